"""
Core orchestration for the tool synchronizer.

Contains the download-and-unpack executor, the run pipeline (run_sync),
the dry-run listing, and the CLI entry point (main).

A run is strictly sequential: read the manifest, discover the catalog,
diff, download each pending item, then rewrite the manifest once.
"""

import argparse
import logging
import sys
import zipfile
import zlib
from pathlib import Path

import requests

from toolsync.diff import ManifestIndex, change_status, current_entries, select_downloads
from toolsync.manifest import Manifest, build_final_manifest
from toolsync.models import CatalogEntry, VariantSelection, destination_dir
from toolsync.report import SyncReport
from toolsync.sources import discover_catalog
from utils import format_bytes
from utils.config import ProxyConfig, SyncConfig, build_proxy_config
from utils.errors import (
    ConfigError,
    ExtractionError,
    FilesystemError,
    ManifestFormatError,
    NetworkError,
)
from utils.http import SessionManager, request_or_raise
from utils.progress import ProgressTracker, SilentProgressTracker, TerminalProgressTracker

logger = logging.getLogger(__name__)

LOG_FILE_FORMAT = "%(asctime)s  %(levelname)-7s  %(name)s  %(message)s"

# zipfile surfaces corrupt, encrypted, truncated and unsupported members
# through several unrelated exception types
EXTRACTION_FAILURES = (
    zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError, OSError,
)


# ---- Download helpers ----

def download_entry(session: requests.Session, entry: CatalogEntry, dest_dir: Path,
                   config: SyncConfig | None = None) -> Path:
    """Stream ``entry`` to ``dest_dir / entry.name`` and return the file path.

    Raises:
        NetworkError: If the request fails or the stream breaks off
        FilesystemError: If the file cannot be written
    """
    config = config or SyncConfig()
    dest_path = dest_dir / entry.name
    resp = request_or_raise(session, "GET", entry.url,
                            timeout=config.download_timeout_seconds, stream=True)
    written = 0
    try:
        with open(dest_path, "wb") as f:
            for chunk in resp.iter_content(chunk_size=config.chunk_size):
                if chunk:
                    f.write(chunk)
                    written += len(chunk)
    except requests.RequestException as exc:
        raise NetworkError(f"GET {entry.url} interrupted: {exc}") from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot write {dest_path}: {exc}") from exc
    finally:
        resp.close()

    logger.debug("Wrote %s (%d bytes)", dest_path, written)
    return dest_path


def extract_archive(zip_path: Path, dest_dir: Path) -> int:
    """Extract a ZIP archive into dest_dir, overwriting existing files.

    Returns:
        Number of members extracted

    Raises:
        ExtractionError: If the archive is corrupt or a member cannot be written
    """
    try:
        with zipfile.ZipFile(zip_path, "r") as zf:
            names = zf.namelist()
            zf.extractall(dest_dir)
    except EXTRACTION_FAILURES as exc:
        raise ExtractionError(f"Cannot extract {zip_path.name}: {exc}") from exc
    logger.debug("Extracted %d file(s) from %s", len(names), zip_path.name)
    return len(names)


def _remove_archive(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove archive %s: %s", path, exc)


def _fetch_and_unpack(session: requests.Session, entry: CatalogEntry, dest_dir: Path,
                      is_archive: bool, config: SyncConfig) -> None:
    """Download one entry and unpack it if it is an archive.

    The archive file is removed afterwards even when the download or the
    extraction failed.
    """
    dest_path = dest_dir / entry.name
    try:
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create {dest_dir}: {exc}") from exc
        download_entry(session, entry, dest_dir, config)
        if is_archive:
            extract_archive(dest_path, dest_dir)
    finally:
        if is_archive:
            _remove_archive(dest_path)


def execute_downloads(
    session: requests.Session,
    tasks: list[CatalogEntry],
    dest_root: Path,
    progress: ProgressTracker | None = None,
    config: SyncConfig | None = None,
    report: SyncReport | None = None,
) -> SyncReport:
    """Download, and unpack where needed, every task in order.

    A failing task is recorded in the report and reported to ``progress``;
    the remaining tasks still run. Archives are removed after extraction
    whether or not the download and extraction succeeded.

    Returns:
        The report, with ``downloaded`` and ``failures`` filled in
    """
    config = config or SyncConfig()
    progress = progress or SilentProgressTracker()
    report = report or SyncReport()
    total = len(tasks)

    for index, entry in enumerate(tasks, start=1):
        dest_dir = destination_dir(entry, dest_root, config)
        is_archive = entry.name.lower().endswith(config.archive_suffix)
        progress.start_item(index, total, entry.name)

        try:
            _fetch_and_unpack(session, entry, dest_dir, is_archive, config)
        except (NetworkError, ExtractionError, FilesystemError) as exc:
            logger.debug("Item %s failed", entry.name, exc_info=True)
            report.add_failure(entry, exc)
            progress.mark_failed(error=str(exc))
            continue

        report.add_download(entry)
        progress.mark_completed()
        logger.info("    [OK] %s (%s)", entry.name, format_bytes(entry.size))

    return report


# ---- Pipeline ----

def run_sync(
    config: SyncConfig,
    selection: VariantSelection = VariantSelection.BOTH,
    proxy_config: ProxyConfig | None = None,
    progress: ProgressTracker | None = None,
    session: requests.Session | None = None,
) -> SyncReport:
    """Synchronize ``config.dest_dir`` with the remote catalog.

    Args:
        config: Pipeline settings, including the destination root
        selection: Which variants to synchronize
        proxy_config: Proxy settings for a session created here
        progress: Progress surface for the download phase
        session: Existing session to use instead of creating one

    Returns:
        Report of the run. ``status`` is ``"up_to_date"`` when nothing needed
        downloading (the manifest is left untouched), else ``"completed"``.

    Raises:
        ManifestFormatError: If an existing manifest is malformed
        NetworkError: If the index page or any item's metadata cannot be fetched
        FilesystemError: If the destination or the manifest cannot be written
    """
    report = SyncReport()
    dest_root = Path(config.dest_dir)
    try:
        dest_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Cannot create destination {dest_root}: {exc}") from exc

    manifest = Manifest(config.manifest_path)
    manifest.load()

    manager = None
    if session is None:
        manager = SessionManager(proxy_config)
        session = manager.session
    try:
        logger.info("Discovering catalog at %s", config.index_url)
        catalog = discover_catalog(session, selection, config)
        report.catalog_size = len(catalog)

        tasks = select_downloads(catalog, manifest.records, manifest.first_install)
        report.selected = len(tasks)
        current = [] if manifest.first_install else current_entries(catalog, manifest.records)
        report.current = current

        if not tasks:
            report.finish("up_to_date")
            logger.info("Everything is up to date; manifest unchanged")
            return report

        logger.info("Downloading %d item(s) to %s", len(tasks), dest_root.resolve())
        execute_downloads(session, tasks, dest_root, progress, config, report)
    finally:
        if manager is not None:
            manager.close()

    manifest.save(build_final_manifest(report.downloaded, current))
    report.manifest_written = True
    report.finish("completed")
    return report


def list_catalog(
    config: SyncConfig,
    selection: VariantSelection = VariantSelection.BOTH,
    proxy_config: ProxyConfig | None = None,
    session: requests.Session | None = None,
) -> list[tuple[CatalogEntry, str]]:
    """Print the catalog with each entry's status, without downloading.

    Returns:
        ``(entry, status)`` pairs; status is ``"new"``, ``"changed"`` or ``"current"``
    """
    manifest = Manifest(config.manifest_path)
    manifest.load()

    manager = None
    if session is None:
        manager = SessionManager(proxy_config)
        session = manager.session
    try:
        catalog = discover_catalog(session, selection, config)
    finally:
        if manager is not None:
            manager.close()

    index = ManifestIndex(manifest.records)
    rows = [(entry, change_status(entry, index, manifest.first_install)) for entry in catalog]

    print(f"\n{'=' * 70}")
    print(f"  {len(rows)} item(s) at {config.index_url}")
    print(f"{'=' * 70}")
    for entry, status in rows:
        print(f"  [{status.upper():7}] {entry.name:<40} {entry.variant.value:<9} "
              f"{format_bytes(entry.size):>9}")
        print(f"            {entry.url}")
    pending = sum(1 for _, status in rows if status != "current")
    print(f"\n{pending} of {len(rows)} item(s) would be downloaded")
    return rows


# ---- Main ----

def _configure_logging(verbose: bool, log_file: Path | None) -> None:
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    handlers: list[logging.Handler] = [console]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT, datefmt="%H:%M:%S"))
        handlers.append(file_handler)
    logging.basicConfig(
        level=logging.DEBUG if (verbose or log_file) else logging.INFO,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )
    # urllib3 connection chatter is only useful in the log file
    logging.getLogger("urllib3").setLevel(logging.INFO)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download new and changed tools from the public index into a local folder."
    )
    parser.add_argument(
        "--dest", type=Path, default=None,
        help="Destination directory (default: current directory or TOOLSYNC_DEST)",
    )
    parser.add_argument(
        "--variant", choices=[s.value for s in VariantSelection], default="both",
        help="Which build flavor to synchronize (default: both)",
    )
    parser.add_argument(
        "--index-url", default=None,
        help="Override the index page URL",
    )
    proxy = parser.add_argument_group("proxy")
    proxy.add_argument("--proxy", default=None, metavar="URL",
                       help="Send every request through this proxy")
    proxy.add_argument("--proxy-user", default=None, metavar="NAME",
                       help="Proxy user name (requires --proxy)")
    proxy.add_argument("--proxy-password", default=None, metavar="PASSWORD",
                       help="Proxy password (or TOOLSYNC_PROXY_PASSWORD)")
    proxy.add_argument("--proxy-default-credentials", action="store_true",
                       help="Authenticate to the proxy with stored credentials (netrc)")
    parser.add_argument(
        "--list", action="store_true", dest="list_only",
        help="List the catalog and what would be downloaded, without downloading",
    )
    parser.add_argument(
        "--summary-json", type=Path, default=None, metavar="PATH",
        help="Write a JSON report of the run to PATH",
    )
    parser.add_argument(
        "--log-file", type=Path, default=None, metavar="PATH",
        help="Also write a detailed log to PATH",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show request-level detail",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and run one synchronization. Returns the exit code."""
    args = _parse_args(argv)
    try:
        _configure_logging(args.verbose, args.log_file)
    except OSError as exc:
        print(f"ERROR: Cannot open log file {args.log_file}: {exc}", file=sys.stderr)
        return 1

    try:
        proxy_config = build_proxy_config(
            args.proxy, args.proxy_user, args.proxy_password,
            args.proxy_default_credentials,
        )
        config = SyncConfig.from_env()
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if args.dest is not None:
        config.dest_dir = args.dest
    if args.index_url:
        config.index_url = args.index_url
    selection = VariantSelection(args.variant)

    try:
        if args.list_only:
            list_catalog(config, selection, proxy_config)
            return 0
        progress = TerminalProgressTracker()
        report = run_sync(config, selection, proxy_config, progress)
    except (ManifestFormatError, NetworkError, FilesystemError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if report.status == "completed":
        progress.finish()
    print(f"\n{'=' * 70}")
    print(f"  Sync {report.status.replace('_', ' ')}: {report.console_summary()}")
    print(f"  Location: {Path(config.dest_dir).resolve()}")
    if report.manifest_written:
        print(f"  Manifest: {config.manifest_path}")
    for failure in report.failures:
        print(f"  [FAIL] {failure.name}: {failure.error}")
    print(f"{'=' * 70}")

    if args.summary_json:
        report.write_json(args.summary_json)
    return 0
