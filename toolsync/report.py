"""
Run report — structured account of what one synchronization did.

Collects the downloaded entries, the entries that were already current and
the per-item failures, and renders them for the terminal or as JSON.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from toolsync.models import CatalogEntry
from utils.common import format_bytes


@dataclass
class FailureRecord:
    """One item that could not be downloaded or unpacked."""

    name: str
    url: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "url": self.url, "error": self.error}


@dataclass
class SyncReport:
    """Structured summary of one run."""

    status: str = "started"                    # started | up_to_date | completed
    catalog_size: int = 0
    selected: int = 0
    downloaded: list[CatalogEntry] = field(default_factory=list)
    current: list[CatalogEntry] = field(default_factory=list)
    failures: list[FailureRecord] = field(default_factory=list)
    manifest_written: bool = False
    start_time: float = field(default_factory=time.time)
    elapsed_seconds: float = 0.0

    # ── helpers ───────────────────────────────────────────────────────────

    def add_download(self, entry: CatalogEntry) -> None:
        self.downloaded.append(entry)

    def add_failure(self, entry: CatalogEntry, error: Exception | str) -> None:
        self.failures.append(FailureRecord(entry.name, entry.url, str(error)))

    def finish(self, status: str) -> None:
        self.status = status
        self.elapsed_seconds = time.time() - self.start_time

    @property
    def downloaded_bytes(self) -> int:
        return sum(e.size or 0 for e in self.downloaded)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def console_summary(self) -> str:
        """One-line summary suitable for the terminal."""
        if self.status == "up_to_date":
            return f"all {self.catalog_size} item(s) up to date"
        parts = [f"{len(self.downloaded)} downloaded ({format_bytes(self.downloaded_bytes)})"]
        if self.current:
            parts.append(f"{len(self.current)} current")
        if self.failures:
            parts.append(f"{self.failed} failed")
        parts.append(f"{self.elapsed_seconds:.1f}s")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "status": self.status,
            "catalog_size": self.catalog_size,
            "selected": self.selected,
            "downloaded": [e.name for e in self.downloaded],
            "current": len(self.current),
            "manifest_written": self.manifest_written,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }
        if self.failures:
            d["failures"] = [f.to_dict() for f in self.failures]
        return d

    def write_json(self, path: Path) -> Path:
        """Write the report as JSON to ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path
