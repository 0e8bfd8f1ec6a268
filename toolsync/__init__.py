"""
Tool Synchronizer Package.

Discovers downloadable tool packages listed on a public index page, compares
them against the local manifest of previously fetched files, downloads
anything new or changed, unpacks archives, and rewrites the manifest.

``from toolsync import run_sync`` is the programmatic entry point;
``toolsync.core.main`` is the CLI.
"""

# ---- Data model ----
from toolsync.models import (
    CatalogEntry,
    Variant,
    VariantSelection,
    destination_dir,
)

# ---- Manifest ----
from toolsync.manifest import (
    MANIFEST_FIELDS,
    Manifest,
    ManifestRecord,
    build_final_manifest,
    load_manifest,
    save_manifest,
)

# ---- Sources: catalog discovery ----
from toolsync.sources import (
    classify_variant,
    discover_catalog,
    extract_candidate_urls,
    fetch_entry_metadata,
    fetch_index_page,
    is_bundle_url,
    normalize_catalog,
    rewrite_url,
)

# ---- Diff ----
from toolsync.diff import (
    current_entries,
    is_current,
    select_downloads,
)

# ---- Report ----
from toolsync.report import FailureRecord, SyncReport

# ---- Core: download execution, pipeline, CLI ----
from toolsync.core import (
    download_entry,
    execute_downloads,
    extract_archive,
    list_catalog,
    main,
    run_sync,
)

__all__ = [
    # Data model
    "CatalogEntry",
    "Variant",
    "VariantSelection",
    "destination_dir",
    # Manifest
    "MANIFEST_FIELDS",
    "Manifest",
    "ManifestRecord",
    "build_final_manifest",
    "load_manifest",
    "save_manifest",
    # Sources
    "classify_variant",
    "discover_catalog",
    "extract_candidate_urls",
    "fetch_entry_metadata",
    "fetch_index_page",
    "is_bundle_url",
    "normalize_catalog",
    "rewrite_url",
    # Diff
    "current_entries",
    "is_current",
    "select_downloads",
    # Report
    "FailureRecord",
    "SyncReport",
    # Core
    "download_entry",
    "execute_downloads",
    "extract_archive",
    "list_catalog",
    "main",
    "run_sync",
]
