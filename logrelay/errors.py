"""
Error taxonomy for the relay pipeline.

Setup failures (BusUnavailable, WatchSetupFailed raised while a loop is
being built) are fatal. Everything else is recovered inside the loop that
hit it: logged, then the loop waits for the next event.
"""


class RelayError(Exception):
    """Base class for all logrelay errors."""


class ExtractionError(RelayError):
    """The log file could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class NotFound(ExtractionError):
    """The log file does not exist."""

    def __init__(self, path: str):
        super().__init__(path, "Log file not found")


class PermissionDenied(ExtractionError):
    """The log file exists but cannot be opened for reading."""

    def __init__(self, path: str):
        super().__init__(path, "Permission denied reading log file")


class Contended(ExtractionError):
    """A writer holds an exclusive lock on the log file right now."""

    def __init__(self, path: str):
        super().__init__(path, "Log file is locked by a writer")


class BusUnavailable(RelayError):
    """No D-Bus connection could be established or used."""


class EncodingFailed(RelayError):
    """A payload could not be serialized into a signal."""


class WatchSetupFailed(RelayError):
    """The log file could not be registered for change notifications."""


class DecodeFailed(RelayError):
    """A received signal did not carry a single string argument."""


__all__ = [
    "RelayError",
    "ExtractionError",
    "NotFound",
    "PermissionDenied",
    "Contended",
    "BusUnavailable",
    "EncodingFailed",
    "WatchSetupFailed",
    "DecodeFailed",
]
