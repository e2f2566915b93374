"""Tests for the snapshot writer and prior-version detection."""

import json
from pathlib import Path

import pytest

from asset_snapshot._internal.io.snapshot_writer import (
    LEGACY_ARTIFACTS,
    MAPPINGS_FILE,
    SnapshotWriter,
    read_recorded_version,
    safe_relative_path,
)
from asset_snapshot.kernel.values import IndexKind, IndexShard


class TestReadRecordedVersion:
    def test_missing_file(self, tmp_path):
        assert read_recorded_version(tmp_path) is None

    def test_valid_version(self, tmp_path):
        (tmp_path / MAPPINGS_FILE).write_text(json.dumps({"version": "1.2"}), encoding="utf-8")
        assert read_recorded_version(tmp_path) == "1.2"

    @pytest.mark.parametrize("content", ["", "   ", "{not json", "[1, 2]", '{"version": 3}', '{"version": "  "}'])
    def test_unusable_metadata_means_no_version(self, tmp_path, content):
        (tmp_path / MAPPINGS_FILE).write_text(content, encoding="utf-8")
        assert read_recorded_version(tmp_path) is None

    def test_inaccessible_directory_means_no_version(self, tmp_path, monkeypatch):
        real_is_file = Path.is_file

        def denied(self):
            if self.name == MAPPINGS_FILE:
                raise PermissionError(13, "Permission denied", str(self))
            return real_is_file(self)

        monkeypatch.setattr(Path, "is_file", denied)
        assert read_recorded_version(tmp_path) is None


class TestSnapshotWriter:
    def test_writes_all_artifacts(self, tmp_path):
        writer = SnapshotWriter(tmp_path / "out")
        writer.write_schemas({"Item.json": {"type": "object"}, "nested/Block.json": {}})
        shard = IndexShard(
            index_kind=IndexKind.UI_DATA_SETS,
            key="BlockGroups",
            relative_path="indexes/uiDataSet/BlockGroups.json",
            values=["Stone"],
        )
        assert writer.write_indexes([shard], "1.0", "t") == 1
        writer.write_mappings("1.0", "t", {"json.schemas": []})

        out = tmp_path / "out"
        mappings = json.loads((out / MAPPINGS_FILE).read_text(encoding="utf-8"))
        assert mappings == {"version": "1.0", "generatedAt": "t", "schemaMappings": {"json.schemas": []}}
        assert (out / "schemas" / "nested" / "Block.json").is_file()
        text = (out / "indexes" / "uiDataSet" / "BlockGroups.json").read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text)["values"] == ["Stone"]

    def test_directories_are_cleared_first(self, tmp_path):
        out = tmp_path / "out"
        (out / "schemas").mkdir(parents=True)
        (out / "schemas" / "Stale.json").write_text("{}", encoding="utf-8")
        (out / "indexes" / "old").mkdir(parents=True)
        (out / "indexes" / "old" / "x.json").write_text("{}", encoding="utf-8")

        writer = SnapshotWriter(out)
        writer.write_schemas({"Fresh.json": {}})
        writer.write_indexes([], "1.0", "t")
        assert sorted(p.name for p in (out / "schemas").iterdir()) == ["Fresh.json"]
        assert list((out / "indexes").iterdir()) == []

    def test_legacy_artifacts_removed(self, tmp_path):
        for name in ("stores_info.json", "schemas.bson", "reference_indexes_v1.json", "keep.json"):
            (tmp_path / name).write_text("{}", encoding="utf-8")
        removed = SnapshotWriter(tmp_path).remove_legacy_artifacts()
        assert sorted(removed) == ["reference_indexes_v1.json", "schemas.bson", "stores_info.json"]
        assert (tmp_path / "keep.json").exists()
        assert "schemaMappings.json" in LEGACY_ARTIFACTS
        assert len(LEGACY_ARTIFACTS) == 24

    def test_unsafe_paths_rejected(self):
        with pytest.raises(ValueError):
            safe_relative_path("../escape.json")
        with pytest.raises(ValueError):
            safe_relative_path("/abs.json")
        assert str(safe_relative_path("a\\b.json")) == "a/b.json"

    def test_non_ascii_written_as_utf8(self, tmp_path):
        SnapshotWriter(tmp_path).write_schemas({"S.json": {"title": "Épée"}})
        assert "Épée" in (tmp_path / "schemas" / "S.json").read_text(encoding="utf-8")
