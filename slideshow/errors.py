"""Exception types raised by the export pipeline and the timeline loader."""
from __future__ import annotations


class ExportError(RuntimeError):
    """Base class for every user-visible export failure."""


class UnsupportedEnvironmentError(ExportError):
    """No drawing surface or no usable encoder; raised before any frame is rendered."""


class ExportFailedError(ExportError):
    """The encoder or the capture surface failed while frames were being written."""


class ExportAbortedError(ExportError):
    pass


class ExportInProgressError(ExportError):
    pass


class TimelineError(ValueError):
    pass
