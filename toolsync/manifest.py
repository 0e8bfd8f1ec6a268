"""
Manifest management for the tool synchronizer.

The manifest is a CSV file at the destination root recording every item
that was downloaded successfully: name, entity tag, URL, size and variant.
It is read once at the start of a run and replaced wholesale at the end,
never appended to, so an interrupted run leaves the previous manifest
authoritative.

The column names (``Name,SHA1,URL,Size,IsNet6``) are fixed so manifests
written by earlier versions of the updater stay readable. ``SHA1`` holds
the entity tag, whatever its format.
"""

import csv
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from toolsync.models import CatalogEntry, Variant
from utils.errors import FilesystemError, ManifestFormatError
from utils.patterns import FALSE_LITERAL, TRUE_LITERAL

logger = logging.getLogger(__name__)

MANIFEST_FIELDS = ["Name", "SHA1", "URL", "Size", "IsNet6"]


@dataclass(frozen=True)
class ManifestRecord:
    """One previously completed download."""

    name: str
    signature: str
    url: str
    size: int | None
    variant: Variant

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "ManifestRecord":
        """Record a successfully downloaded (or still current) catalog entry."""
        return cls(
            name=entry.name,
            signature=entry.signature,
            url=entry.url,
            size=entry.size,
            variant=entry.variant,
        )

    def to_row(self) -> dict[str, str]:
        """Convert to a CSV row keyed by MANIFEST_FIELDS."""
        return {
            "Name": self.name,
            "SHA1": self.signature,
            "URL": self.url,
            "Size": "" if self.size is None else str(self.size),
            "IsNet6": "True" if self.variant is Variant.SECONDARY else "False",
        }

    @classmethod
    def from_row(cls, row: dict[str, str], line_no: int = 0) -> "ManifestRecord":
        """Parse a CSV row.

        Raises:
            ManifestFormatError: If Size is not an integer or IsNet6 is not a
                boolean literal.
        """
        size_text = (row.get("Size") or "").strip()
        try:
            size = int(size_text) if size_text else None
        except ValueError:
            raise ManifestFormatError(
                f"line {line_no}: Size {size_text!r} is not a whole number") from None

        flag = row.get("IsNet6") or ""
        if TRUE_LITERAL.match(flag):
            variant = Variant.SECONDARY
        elif FALSE_LITERAL.match(flag):
            variant = Variant.PRIMARY
        else:
            raise ManifestFormatError(
                f"line {line_no}: IsNet6 {flag!r} is not True or False")

        return cls(
            name=row.get("Name") or "",
            signature=row.get("SHA1") or "",
            url=row.get("URL") or "",
            size=size,
            variant=variant,
        )


class Manifest:
    """Reads and writes the manifest file at ``path``."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.records: list[ManifestRecord] = []
        self.existed = False

    @property
    def first_install(self) -> bool:
        """True when no manifest file was found by the last ``load()``."""
        return not self.existed

    def load(self) -> bool:
        """Load records from disk. Returns False if the file does not exist.

        A missing file is the normal first-install case and leaves
        ``records`` empty. A file that exists but does not have the expected
        columns is rejected rather than treated as empty.

        Raises:
            ManifestFormatError: If the file exists but is malformed
            FilesystemError: If the file exists but cannot be read
        """
        self.records = []
        if not self.path.exists():
            self.existed = False
            logger.info("No manifest at %s; treating this run as a first install", self.path)
            return False

        try:
            text = self.path.read_text(encoding="utf-8-sig")
        except OSError as exc:
            raise FilesystemError(f"Cannot read manifest {self.path}: {exc}") from exc

        self.records = parse_manifest(text, source=str(self.path))
        self.existed = True
        logger.info("Loaded %d manifest record(s) from %s", len(self.records), self.path)
        return True

    def save(self, records: Iterable[ManifestRecord]) -> None:
        """Replace the manifest file with ``records``.

        Writes to a temporary file in the same directory and renames it over
        the target, so a failure mid-write leaves the old manifest intact.

        Raises:
            FilesystemError: If the file cannot be written
        """
        records = list(records)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", newline="", dir=self.path.parent,
                prefix=".manifest-", suffix=".tmp", delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(format_manifest(records))
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise FilesystemError(f"Cannot write manifest {self.path}: {exc}") from exc

        self.records = records
        self.existed = True
        logger.info("Wrote %d manifest record(s) to %s", len(records), self.path)


def parse_manifest(text: str, source: str = "<manifest>") -> list[ManifestRecord]:
    """Parse manifest CSV text into records.

    A leading ``#TYPE ...`` line (written by older PowerShell exports) is
    skipped. The header must name exactly the MANIFEST_FIELDS columns, in
    any order.

    Raises:
        ManifestFormatError: On an unexpected column set or a bad row
    """
    lines = text.splitlines(keepends=True)
    if lines and lines[0].startswith("#TYPE"):
        lines = lines[1:]
    if not lines or not lines[0].strip():
        raise ManifestFormatError(f"{source}: missing header row")

    reader = csv.DictReader(io.StringIO("".join(lines)))
    header = [h.strip() for h in reader.fieldnames or []]
    if sorted(header) != sorted(MANIFEST_FIELDS):
        raise ManifestFormatError(
            f"{source}: expected columns {','.join(MANIFEST_FIELDS)}, "
            f"found {','.join(header)}")
    reader.fieldnames = header

    records = []
    for line_no, row in enumerate(reader, start=2):
        if None in row or any(v is None for v in row.values()):
            raise ManifestFormatError(f"{source}: line {line_no} has the wrong number of fields")
        records.append(ManifestRecord.from_row(row, line_no))
    return records


def format_manifest(records: Iterable[ManifestRecord]) -> str:
    """Render records as manifest CSV text, header first."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=MANIFEST_FIELDS, quoting=csv.QUOTE_ALL,
                            lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow(record.to_row())
    return buf.getvalue()


def load_manifest(path: Path) -> tuple[list[ManifestRecord], bool]:
    """Load the manifest at ``path``.

    Returns:
        ``(records, first_install)``; ``first_install`` is True when the file
        does not exist, in which case ``records`` is empty.
    """
    manifest = Manifest(path)
    manifest.load()
    return manifest.records, manifest.first_install


def save_manifest(path: Path, records: Iterable[ManifestRecord]) -> None:
    """Overwrite the manifest at ``path`` with ``records``."""
    Manifest(path).save(records)


def build_final_manifest(downloaded: Iterable[CatalogEntry],
                         current: Iterable[CatalogEntry]) -> list[ManifestRecord]:
    """Combine this run's successful downloads with the already-current entries.

    Entries are deduplicated on ``(url, signature)``; the first occurrence
    wins, downloads before current entries.
    """
    seen: set[tuple[str, str]] = set()
    records: list[ManifestRecord] = []
    for entry in [*downloaded, *current]:
        key = (entry.url, entry.signature)
        if key in seen:
            continue
        seen.add(key)
        records.append(ManifestRecord.from_entry(entry))
    return records
