"""
Tests for change detection — toolsync/diff.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from toolsync.diff import (
    ManifestIndex,
    change_status,
    current_entries,
    is_current,
    select_downloads,
)
from toolsync.manifest import ManifestRecord
from toolsync.models import CatalogEntry, Variant

BASE = "https://download.ericzimmermanstools.com/"


def _entry(name, sig, url=None):
    return CatalogEntry(name=name, url=url or BASE + name, signature=sig,
                        size=10, variant=Variant.PRIMARY)


def _record(name, sig, url=None):
    return ManifestRecord.from_entry(_entry(name, sig, url))


class TestSelectDownloads:
    def test_first_install_selects_everything(self):
        catalog = [_entry("a.zip", "1"), _entry("b.zip", "2")]
        # Records are ignored on a first install
        assert select_downloads(catalog, [_record("a.zip", "1")], first_install=True) == catalog

    def test_empty_manifest_not_first_install(self):
        catalog = [_entry("a.zip", "1")]
        assert select_downloads(catalog, [], first_install=False) == catalog

    def test_unchanged_entry_not_selected(self):
        catalog = [_entry("a.zip", "1")]
        assert select_downloads(catalog, [_record("a.zip", "1")]) == []

    def test_changed_signature_selected(self):
        catalog = [_entry("a.zip", "2")]
        assert select_downloads(catalog, [_record("a.zip", "1")]) == catalog

    def test_missing_from_manifest_selected(self):
        catalog = [_entry("a.zip", "1"), _entry("b.zip", "2")]
        assert select_downloads(catalog, [_record("a.zip", "1")]) == [catalog[1]]

    def test_moved_content_not_selected(self):
        """Same signature at a different URL counts as already downloaded."""
        moved = _entry("a.zip", "S", url=BASE + "new/a.zip")
        assert select_downloads([moved], [_record("a.zip", "S")]) == []

    def test_empty_signature_does_not_match_across_urls(self):
        other = _entry("b.zip", "")
        assert select_downloads([other], [_record("a.zip", "")]) == [other]

    def test_empty_signature_same_url_is_current(self):
        entry = _entry("a.zip", "")
        assert select_downloads([entry], [_record("a.zip", "")]) == []

    def test_any_record_at_the_url_can_match(self):
        records = [_record("a.zip", "2"), _record("a.zip", "")]
        assert select_downloads([_entry("a.zip", "")], records) == []

    def test_preserves_catalog_order(self):
        catalog = [_entry(n, n) for n in ("c.zip", "a.zip", "b.zip")]
        assert select_downloads(catalog, [_record("x.zip", "x")]) == catalog


class TestCurrentEntries:
    def test_matches_by_signature(self):
        moved = _entry("a.zip", "S", url=BASE + "elsewhere/a.zip")
        fresh = _entry("b.zip", "T")
        assert current_entries([moved, fresh], [_record("a.zip", "S")]) == [moved]

    def test_no_records(self):
        assert current_entries([_entry("a.zip", "1")], []) == []


class TestChangeStatus:
    def test_statuses(self):
        index = ManifestIndex([_record("a.zip", "1"), _record("b.zip", "1b")])
        assert change_status(_entry("a.zip", "1"), index) == "current"
        assert change_status(_entry("b.zip", "2"), index) == "changed"
        assert change_status(_entry("c.zip", "3"), index) == "new"

    def test_first_install_is_new(self):
        index = ManifestIndex([_record("a.zip", "1")])
        assert change_status(_entry("a.zip", "1"), index, first_install=True) == "new"

    def test_is_current_helper(self):
        index = ManifestIndex([_record("a.zip", "1")])
        assert is_current(_entry("a.zip", "1"), index)
        assert not is_current(_entry("a.zip", "2"), index)
        assert len(index) == 1
