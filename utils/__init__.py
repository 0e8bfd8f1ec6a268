"""Shared utilities for the tool synchronizer."""

# Common utilities
from utils.common import format_bytes, sanitize_filename

# Error types
from utils.errors import (
    ToolSyncError,
    ConfigError,
    NetworkError,
    ExtractionError,
    FilesystemError,
    ManifestFormatError,
)

# Pattern definitions
from utils.patterns import CANDIDATE_URL

# Progress tracking
from utils.progress import (
    ProgressTracker,
    TerminalProgressTracker,
    SilentProgressTracker,
)

# Configuration
from utils.config import (
    Config,
    SyncConfig,
    ProxyConfig,
    NoProxy,
    ExplicitProxy,
    ExplicitProxyWithCredentials,
    ExplicitProxyWithDefaultCredentials,
    build_proxy_config,
)

# HTTP utilities
from utils.http import (
    HEADERS,
    SessionManager,
    request_or_raise,
)

__all__ = [
    # Common
    "format_bytes",
    "sanitize_filename",
    # Errors
    "ToolSyncError",
    "ConfigError",
    "NetworkError",
    "ExtractionError",
    "FilesystemError",
    "ManifestFormatError",
    # Patterns
    "CANDIDATE_URL",
    # Progress
    "ProgressTracker",
    "TerminalProgressTracker",
    "SilentProgressTracker",
    # Config
    "Config",
    "SyncConfig",
    "ProxyConfig",
    "NoProxy",
    "ExplicitProxy",
    "ExplicitProxyWithCredentials",
    "ExplicitProxyWithDefaultCredentials",
    "build_proxy_config",
    # HTTP
    "HEADERS",
    "SessionManager",
    "request_or_raise",
]
