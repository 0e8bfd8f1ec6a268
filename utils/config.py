"""Configuration management utilities for the tool synchronizer.

Provides:
- A dict/JSON round-trippable ``Config`` base class
- ``SyncConfig``: every constant of the sync pipeline, overridable from the
  environment
- The ``ProxyConfig`` family: one validated value describing how every
  request of a run reaches the network
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote, urlparse

from requests.utils import get_netrc_auth

from utils.errors import ConfigError


class Config:
    """Base configuration class for organizing application settings."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance with values from dictionary
        """
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config

    def save_json(self, path: Path) -> None:
        """Save configuration to JSON file.

        Args:
            path: Path to save configuration file
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_json(cls, path: Path) -> "Config":
        """Load configuration from JSON file.

        Args:
            path: Path to configuration file

        Returns:
            Config instance loaded from file

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


class SyncConfig(Config):
    """Settings for one synchronization run.

    Environment variables (read by ``from_env``):
        TOOLSYNC_INDEX_URL: Page listing the downloadable tools
        TOOLSYNC_DEST: Destination root directory (default: current directory)
        TOOLSYNC_TIMEOUT: Seconds to wait for the index page and HEAD requests
        TOOLSYNC_DOWNLOAD_TIMEOUT: Seconds to wait for a download to start
    """

    def __init__(self):
        """Initialize sync configuration."""
        self.index_url = "https://ericzimmerman.github.io/index.md"
        self.dest_dir = Path(".")

        # Links on the index page point at the storage backend; downloads go
        # through the distribution host.
        self.storage_prefix = "https://f001.backblazeb2.com/file/EricZimmermanTools/"
        self.canonical_prefix = "https://download.ericzimmermanstools.com/"

        # All-in-one bundles duplicate the individual tools
        self.bundle_suffixes = ("All.zip", "All_6.zip")

        self.secondary_marker = "/net6/"
        self.secondary_subdir = "net6"
        # The bootstrap updater itself: always Primary, never filtered out
        self.pinned_primary_name = "Get-ZimmermanTools.zip"

        self.manifest_name = "!!!RemoteFileDetails.csv"
        self.archive_suffix = ".zip"

        self.timeout_seconds = 30
        self.download_timeout_seconds = 120
        self.chunk_size = 65536

    @property
    def manifest_path(self) -> Path:
        """Location of the manifest file under the destination root."""
        return Path(self.dest_dir) / self.manifest_name

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Create a SyncConfig populated from ``TOOLSYNC_*`` environment variables."""
        config = cls()
        config.index_url = os.getenv("TOOLSYNC_INDEX_URL", config.index_url)
        config.dest_dir = Path(os.getenv("TOOLSYNC_DEST", str(config.dest_dir)))
        try:
            config.timeout_seconds = int(
                os.getenv("TOOLSYNC_TIMEOUT", str(config.timeout_seconds)))
            config.download_timeout_seconds = int(
                os.getenv("TOOLSYNC_DOWNLOAD_TIMEOUT",
                          str(config.download_timeout_seconds)))
        except ValueError as exc:
            raise ConfigError(f"Timeout settings must be whole seconds: {exc}") from exc
        return config


# ── Proxy configuration ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProxyConfig:
    """How requests reach the network. Use one of the concrete subclasses."""

    def proxies(self) -> Dict[str, str]:
        """Return the ``proxies`` mapping for a ``requests.Session``."""
        return {}

    def describe(self) -> str:
        return "no explicit proxy"


@dataclass(frozen=True)
class NoProxy(ProxyConfig):
    """No explicit proxy; proxy settings from the environment still apply."""


@dataclass(frozen=True)
class ExplicitProxy(ProxyConfig):
    """Send every request through ``address``."""

    address: str

    def proxies(self) -> Dict[str, str]:
        return {"http": self.address, "https": self.address}

    def describe(self) -> str:
        return f"proxy {self.address}"


@dataclass(frozen=True)
class ExplicitProxyWithCredentials(ExplicitProxy):
    """Send every request through ``address``, authenticating as ``username``."""

    username: str = ""
    password: str = ""

    def proxies(self) -> Dict[str, str]:
        url = _with_userinfo(self.address, self.username, self.password)
        return {"http": url, "https": url}

    def describe(self) -> str:
        return f"proxy {self.address} as {self.username}"


@dataclass(frozen=True)
class ExplicitProxyWithDefaultCredentials(ExplicitProxy):
    """Send every request through ``address`` using the user's stored credentials.

    The credentials come from the netrc entry for the proxy host. Without an
    entry the proxy is used unauthenticated.
    """

    def proxies(self) -> Dict[str, str]:
        auth = get_netrc_auth(self.address)
        if not auth:
            return super().proxies()
        url = _with_userinfo(self.address, auth[0], auth[1])
        return {"http": url, "https": url}

    def describe(self) -> str:
        return f"proxy {self.address} with default credentials"


def _with_userinfo(address: str, username: str, password: str) -> str:
    parsed = urlparse(address)
    userinfo = f"{quote(username, safe='')}:{quote(password, safe='')}"
    return parsed._replace(netloc=f"{userinfo}@{parsed.netloc}").geturl()


def build_proxy_config(
    proxy: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    use_default_credentials: bool = False,
) -> ProxyConfig:
    """Validate the proxy options and return the matching ProxyConfig.

    Args:
        proxy: Proxy URL (``http://host:port``), or None for a direct connection
        username: Proxy user name; requires ``proxy`` and a password
        password: Proxy password; falls back to ``TOOLSYNC_PROXY_PASSWORD``
        use_default_credentials: Authenticate with the user's stored
            credentials; requires ``proxy``, excludes ``username``

    Returns:
        A ProxyConfig subclass instance

    Raises:
        ConfigError: If the options do not form a valid combination
    """
    if not proxy:
        if username or password:
            raise ConfigError("Proxy credentials were given without a proxy address (--proxy).")
        if use_default_credentials:
            raise ConfigError("--proxy-default-credentials requires a proxy address (--proxy).")
        return NoProxy()

    parsed = urlparse(proxy)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Proxy address must be an http(s) URL, got {proxy!r}.")

    if use_default_credentials:
        if username or password:
            raise ConfigError(
                "--proxy-default-credentials cannot be combined with explicit credentials.")
        return ExplicitProxyWithDefaultCredentials(proxy)

    if username:
        password = password or os.getenv("TOOLSYNC_PROXY_PASSWORD")
        if not password:
            raise ConfigError(
                "--proxy-user needs a password (--proxy-password or TOOLSYNC_PROXY_PASSWORD).")
        return ExplicitProxyWithCredentials(proxy, username, password)

    if password:
        raise ConfigError("--proxy-password was given without --proxy-user.")
    return ExplicitProxy(proxy)
