"""
Exception types raised by the tool synchronizer.

Each error kind maps to one stage of a run so callers can decide what is
fatal: configuration problems stop the run before any request is sent,
network problems during discovery abort it, and per-item download or
extraction problems are recorded and skipped.
"""


class ToolSyncError(Exception):
    """Base exception for all synchronizer errors."""


class ConfigError(ToolSyncError):
    """Raised for an invalid option combination, e.g. proxy credentials without a proxy."""


class NetworkError(ToolSyncError):
    """Raised when an HTTP request fails or returns a non-success status."""


class ExtractionError(ToolSyncError):
    """Raised when a downloaded archive cannot be unpacked."""


class FilesystemError(ToolSyncError):
    """Raised when a directory or file under the destination cannot be written."""


class ManifestFormatError(ToolSyncError):
    """Raised when an existing manifest file has an unexpected layout."""
