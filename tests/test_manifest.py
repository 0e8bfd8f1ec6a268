"""
Tests for manifest management — toolsync/manifest.py

Covers ManifestRecord row conversion, CSV persistence, first-install
detection, malformed-file rejection and final manifest reconciliation.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from toolsync.manifest import (
    MANIFEST_FIELDS,
    Manifest,
    ManifestRecord,
    build_final_manifest,
    format_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
)
from toolsync.models import CatalogEntry, Variant
from utils.errors import FilesystemError, ManifestFormatError

URL = "https://download.ericzimmermanstools.com/"


def _entry(name="MFTECmd.zip", sig="abc", url=None, size=100,
           variant=Variant.PRIMARY) -> CatalogEntry:
    return CatalogEntry(name=name, url=url or URL + name, signature=sig,
                        size=size, variant=variant)


# ── ManifestRecord tests ─────────────────────────────────────────────────────

class TestManifestRecord:
    def test_from_entry(self):
        record = ManifestRecord.from_entry(_entry(variant=Variant.SECONDARY))
        assert record.name == "MFTECmd.zip"
        assert record.signature == "abc"
        assert record.url == URL + "MFTECmd.zip"
        assert record.size == 100
        assert record.variant is Variant.SECONDARY

    def test_to_row(self):
        row = ManifestRecord.from_entry(_entry(variant=Variant.SECONDARY)).to_row()
        assert row == {
            "Name": "MFTECmd.zip",
            "SHA1": "abc",
            "URL": URL + "MFTECmd.zip",
            "Size": "100",
            "IsNet6": "True",
        }

    def test_to_row_unknown_size(self):
        row = ManifestRecord.from_entry(_entry(size=None)).to_row()
        assert row["Size"] == ""
        assert row["IsNet6"] == "False"

    @pytest.mark.parametrize("flag,variant", [
        ("True", Variant.SECONDARY),
        ("true", Variant.SECONDARY),
        ("FALSE", Variant.PRIMARY),
        ("", Variant.PRIMARY),
    ])
    def test_from_row_flags(self, flag, variant):
        row = {"Name": "a.zip", "SHA1": "s", "URL": URL + "a.zip", "Size": "5", "IsNet6": flag}
        assert ManifestRecord.from_row(row).variant is variant

    def test_from_row_bad_flag(self):
        row = {"Name": "a.zip", "SHA1": "s", "URL": URL + "a.zip", "Size": "5", "IsNet6": "maybe"}
        with pytest.raises(ManifestFormatError):
            ManifestRecord.from_row(row)

    def test_from_row_bad_size(self):
        row = {"Name": "a.zip", "SHA1": "s", "URL": URL + "a.zip", "Size": "big", "IsNet6": "False"}
        with pytest.raises(ManifestFormatError):
            ManifestRecord.from_row(row)


# ── CSV format ───────────────────────────────────────────────────────────────

class TestManifestFormat:
    def test_header_row(self):
        text = format_manifest([])
        assert text.splitlines() == ['"Name","SHA1","URL","Size","IsNet6"']

    def test_etag_with_quotes_survives(self):
        record = ManifestRecord.from_entry(_entry(sig='"0x8DC1F"'))
        assert parse_manifest(format_manifest([record])) == [record]

    def test_skips_type_line_and_bom(self):
        text = ('#TYPE System.Management.Automation.PSCustomObject\n'
                '"Name","SHA1","URL","Size","IsNet6"\n'
                f'"MFTECmd.zip","abc","{URL}MFTECmd.zip","100","False"\n')
        records = parse_manifest(text)
        assert len(records) == 1
        assert records[0].name == "MFTECmd.zip"

    def test_columns_in_any_order(self):
        text = f"URL,Name,IsNet6,Size,SHA1\n{URL}a.zip,a.zip,True,7,s\n"
        records = parse_manifest(text)
        assert records[0].variant is Variant.SECONDARY
        assert records[0].size == 7

    def test_rejects_unexpected_columns(self):
        with pytest.raises(ManifestFormatError):
            parse_manifest("Name,Hash,URL\na,b,c\n")

    def test_rejects_empty_file(self):
        with pytest.raises(ManifestFormatError):
            parse_manifest("")

    def test_rejects_short_row(self):
        with pytest.raises(ManifestFormatError):
            parse_manifest(",".join(MANIFEST_FIELDS) + "\na.zip,sig\n")


# ── Manifest persistence ─────────────────────────────────────────────────────

class TestManifestPersistence:
    def test_load_nonexistent_is_first_install(self, tmp_path):
        m = Manifest(tmp_path / "manifest.csv")
        assert m.load() is False
        assert m.first_install is True
        assert m.records == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "out" / "manifest.csv"
        records = [
            ManifestRecord.from_entry(_entry()),
            ManifestRecord.from_entry(_entry("net6.zip", "def", variant=Variant.SECONDARY)),
        ]
        save_manifest(path, records)

        loaded, first_install = load_manifest(path)
        assert first_install is False
        assert loaded == records

    def test_save_replaces_wholesale(self, tmp_path):
        path = tmp_path / "manifest.csv"
        save_manifest(path, [ManifestRecord.from_entry(_entry("a.zip"))])
        save_manifest(path, [ManifestRecord.from_entry(_entry("b.zip"))])
        loaded, _ = load_manifest(path)
        assert [r.name for r in loaded] == ["b.zip"]

    def test_save_leaves_no_temp_files(self, tmp_path):
        save_manifest(tmp_path / "manifest.csv", [ManifestRecord.from_entry(_entry())])
        assert [p.name for p in tmp_path.iterdir()] == ["manifest.csv"]

    def test_save_failure_keeps_old_manifest(self, tmp_path, monkeypatch):
        path = tmp_path / "manifest.csv"
        save_manifest(path, [ManifestRecord.from_entry(_entry("old.zip"))])

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("toolsync.manifest.os.replace", boom)
        with pytest.raises(FilesystemError):
            save_manifest(path, [ManifestRecord.from_entry(_entry("new.zip"))])

        loaded, _ = load_manifest(path)
        assert [r.name for r in loaded] == ["old.zip"]
        assert [p.name for p in tmp_path.iterdir()] == ["manifest.csv"]

    def test_load_malformed_raises(self, tmp_path):
        path = tmp_path / "manifest.csv"
        path.write_text("this is not a manifest\n", encoding="utf-8")
        with pytest.raises(ManifestFormatError):
            Manifest(path).load()


# ── build_final_manifest ─────────────────────────────────────────────────────

class TestBuildFinalManifest:
    def test_union_of_downloaded_and_current(self):
        downloaded = [_entry("new.zip", "n1")]
        current = [_entry("same.zip", "s1")]
        records = build_final_manifest(downloaded, current)
        assert [r.name for r in records] == ["new.zip", "same.zip"]

    def test_dedupes_on_url_and_signature(self):
        e = _entry("dup.zip", "d1")
        records = build_final_manifest([e], [e, e])
        assert len(records) == 1

    def test_same_url_different_signature_kept(self):
        records = build_final_manifest([_entry("x.zip", "v2")], [_entry("x.zip", "v1")])
        assert len(records) == 2

    def test_empty(self):
        assert build_final_manifest([], []) == []
