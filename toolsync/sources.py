"""
Catalog discovery for the tool synchronizer.

Fetches the index page, pulls candidate download URLs out of it with a single
regex, and normalizes them into ``CatalogEntry`` objects:

1. rewrite the storage-backend prefix to the distribution host
2. drop all-in-one bundles
3. drop URLs already seen on this run
4. classify the variant (Secondary if the path holds the Secondary marker)
5. apply the caller's variant selection
6. HEAD the URL for its entity tag and size

A failed HEAD aborts the whole normalization with ``NetworkError``; no
partial catalog is returned.
"""

import logging
from collections.abc import Iterable, Iterator
from urllib.parse import unquote, urlparse

import requests

from toolsync.models import CatalogEntry, Variant, VariantSelection
from utils import sanitize_filename
from utils.config import SyncConfig
from utils.http import request_or_raise
from utils.patterns import CANDIDATE_URL

logger = logging.getLogger(__name__)


# ---- Fetch ----

def fetch_index_page(session: requests.Session, url: str,
                     timeout: float = 30) -> str:
    """Download the index page and return its text.

    Raises:
        NetworkError: On transport failure or a non-success status. No retry.
    """
    resp = request_or_raise(session, "GET", url, timeout=timeout)
    logger.info("Fetched index page %s (%d chars)", url, len(resp.text))
    return resp.text


def extract_candidate_urls(text: str) -> Iterator[str]:
    """Yield every https URL ending in .zip or .txt, in order of appearance.

    Duplicates are kept; the normalizer removes them.
    """
    for match in CANDIDATE_URL.finditer(text):
        yield match.group(0)


# ---- Normalize ----

def rewrite_url(url: str, config: SyncConfig) -> str:
    """Replace the storage-backend prefix with the distribution host."""
    if url.startswith(config.storage_prefix):
        return config.canonical_prefix + url[len(config.storage_prefix):]
    return url


def is_bundle_url(url: str, config: SyncConfig) -> bool:
    """True for the all-in-one bundle archives (case-sensitive suffix match)."""
    return url.endswith(tuple(config.bundle_suffixes))


def name_from_url(url: str) -> str:
    """Bare file name from the last path segment of ``url``."""
    path = unquote(urlparse(url).path)
    return sanitize_filename(path.rstrip("/").rsplit("/", 1)[-1])


def is_pinned_primary(url: str, config: SyncConfig) -> bool:
    """True for the file that is always Primary and never filtered out."""
    return name_from_url(url).lower() == config.pinned_primary_name.lower()


def classify_variant(url: str, config: SyncConfig) -> Variant:
    """Secondary if the URL path contains the Secondary marker, else Primary."""
    if is_pinned_primary(url, config):
        return Variant.PRIMARY
    if config.secondary_marker in urlparse(url).path:
        return Variant.SECONDARY
    return Variant.PRIMARY


def fetch_entry_metadata(session: requests.Session, url: str,
                         timeout: float = 30) -> tuple[str, int | None]:
    """HEAD ``url`` and return ``(signature, size)``.

    The signature is the ETag header (empty string if absent); the size is
    the content-length (None if absent or not a number).

    Raises:
        NetworkError: If the HEAD request fails
    """
    resp = request_or_raise(session, "HEAD", url, timeout=timeout, allow_redirects=True)
    signature = resp.headers.get("ETag", "") or ""
    length = (resp.headers.get("Content-Length") or "").strip()
    size = int(length) if length.isdigit() else None
    return signature, size


def normalize_catalog(
    session: requests.Session,
    raw_urls: Iterable[str],
    selection: VariantSelection = VariantSelection.BOTH,
    config: SyncConfig | None = None,
) -> list[CatalogEntry]:
    """Turn raw index URLs into catalog entries.

    Args:
        session: Session used for the per-item HEAD requests
        raw_urls: URLs in order of appearance on the index page
        selection: Which variants to keep; the pinned Primary file is always kept
        config: Pipeline constants (default: SyncConfig())

    Returns:
        Catalog entries in first-appearance order

    Raises:
        NetworkError: If any HEAD request fails
    """
    config = config or SyncConfig()
    seen: set[str] = set()
    entries: list[CatalogEntry] = []

    for raw in raw_urls:
        url = rewrite_url(raw, config)
        if is_bundle_url(url, config):
            logger.debug("Skipping bundle %s", url)
            continue
        if url in seen:
            continue
        seen.add(url)

        variant = classify_variant(url, config)
        if not selection.accepts(variant) and not is_pinned_primary(url, config):
            logger.debug("Skipping %s (%s not selected)", url, variant.value)
            continue

        signature, size = fetch_entry_metadata(session, url, config.timeout_seconds)
        entries.append(CatalogEntry(
            name=name_from_url(url),
            url=url,
            signature=signature,
            size=size,
            variant=variant,
        ))

    logger.info("Catalog holds %d entries", len(entries))
    return entries


def discover_catalog(
    session: requests.Session,
    selection: VariantSelection = VariantSelection.BOTH,
    config: SyncConfig | None = None,
) -> list[CatalogEntry]:
    """Fetch the index page and return the normalized catalog."""
    config = config or SyncConfig()
    text = fetch_index_page(session, config.index_url, config.timeout_seconds)
    return normalize_catalog(session, extract_candidate_urls(text), selection, config)
