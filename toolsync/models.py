"""
Data model for the tool synchronizer.

A catalog is the list of ``CatalogEntry`` objects discovered on the current
run. Each entry belongs to one of two build variants; the variant decides
where the downloaded file lands under the destination root.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from utils.config import SyncConfig


class Variant(Enum):
    """Build flavor of a catalog entry."""

    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def is_secondary(self) -> bool:
        return self is Variant.SECONDARY


class VariantSelection(Enum):
    """Which variants the operator asked to synchronize."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    BOTH = "both"

    def accepts(self, variant: Variant) -> bool:
        """Return True if entries of ``variant`` pass this selection."""
        if self is VariantSelection.BOTH:
            return True
        return self.value == variant.value


@dataclass(frozen=True)
class CatalogEntry:
    """A downloadable item discovered on the index page.

    ``signature`` is the entity tag of the remote resource, compared only for
    equality. ``size`` is advisory and None when the server sent no
    content-length.
    """

    name: str
    url: str
    signature: str
    size: int | None
    variant: Variant

    @property
    def is_secondary(self) -> bool:
        return self.variant.is_secondary


def destination_dir(entry: CatalogEntry, dest_root: Path,
                    config: SyncConfig | None = None) -> Path:
    """Directory an entry is downloaded into.

    Primary entries go directly under ``dest_root``; Secondary entries go
    under the fixed Secondary subdirectory.
    """
    config = config or SyncConfig()
    if entry.is_secondary:
        return Path(dest_root) / config.secondary_subdir
    return Path(dest_root)
