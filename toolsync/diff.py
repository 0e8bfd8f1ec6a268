"""
Change detection between the remote catalog and the local manifest.

An entry is current when the manifest already holds it: either a record at
the same URL with the same signature, or any record carrying the same
non-empty signature (the content moved to a different URL). Everything else
is selected for download. On a first install nothing is current.
"""

import logging
from typing import Iterable

from toolsync.manifest import ManifestRecord
from toolsync.models import CatalogEntry

logger = logging.getLogger(__name__)


class ManifestIndex:
    """Lookups over manifest records by URL and by signature."""

    def __init__(self, records: Iterable[ManifestRecord]):
        self.by_url: dict[str, ManifestRecord] = {}
        self.pairs: set[tuple[str, str]] = set()
        self.signatures: set[str] = set()
        for record in records:
            self.by_url.setdefault(record.url, record)
            self.pairs.add((record.url, record.signature))
            if record.signature:
                self.signatures.add(record.signature)

    def __len__(self) -> int:
        return len(self.by_url)


def is_current(entry: CatalogEntry, index: ManifestIndex) -> bool:
    """Return True if ``entry`` needs no download."""
    if (entry.url, entry.signature) in index.pairs:
        return True
    return bool(entry.signature) and entry.signature in index.signatures


def change_status(entry: CatalogEntry, index: ManifestIndex,
                  first_install: bool = False) -> str:
    """Classify an entry as ``"new"``, ``"changed"`` or ``"current"`` for display."""
    if first_install:
        return "new"
    if is_current(entry, index):
        return "current"
    if entry.url in index.by_url:
        return "changed"
    return "new"


def select_downloads(catalog: Iterable[CatalogEntry],
                     records: Iterable[ManifestRecord],
                     first_install: bool = False) -> list[CatalogEntry]:
    """Return the catalog entries that must be downloaded, in catalog order.

    Args:
        catalog: Normalized catalog entries
        records: Records from the existing manifest (empty on first install)
        first_install: True when no manifest file existed; selects everything

    Returns:
        Entries that are new, missing from the manifest, or whose signature
        changed.
    """
    catalog = list(catalog)
    if first_install:
        logger.info("First install: all %d catalog entries selected", len(catalog))
        return catalog

    index = ManifestIndex(records)
    selected = [entry for entry in catalog if not is_current(entry, index)]
    logger.info("%d of %d catalog entries need downloading", len(selected), len(catalog))
    return selected


def current_entries(catalog: Iterable[CatalogEntry],
                    records: Iterable[ManifestRecord]) -> list[CatalogEntry]:
    """Return the catalog entries the manifest already satisfies."""
    index = ManifestIndex(records)
    return [entry for entry in catalog if is_current(entry, index)]
