"""Tests for value records, shard naming and payload shapes."""

from asset_snapshot.kernel.values import (
    IndexKind,
    ValueRecord,
    make_shards,
    names_with_sources,
    names_with_translations,
    sanitize_index_key,
    shard_path,
    unique_names,
)


class TestSanitizeIndexKey:
    def test_replaces_unsafe_characters(self):
        assert sanitize_index_key("Weird Key/Name!") == "Weird_Key_Name_"
        assert shard_path(IndexKind.UI_DATA_SETS, "Weird Key/Name!") == "indexes/uiDataSet/Weird_Key_Name_.json"

    def test_keeps_dots_dashes_underscores(self):
        assert sanitize_index_key("en-US.v_2") == "en-US.v_2"

    def test_blank_becomes_index(self):
        assert sanitize_index_key("") == "index"
        assert sanitize_index_key("   ") == "___"


class TestPayloads:
    def test_names_with_sources_first_after_sort(self):
        records = [
            ValueRecord(name="b", file="z.json"),
            ValueRecord(name="a", file=None),
            ValueRecord(name="b", file="a.json"),
            ValueRecord(name=" ", file="x.json"),
        ]
        assert names_with_sources(records) == {
            "a": {"sourcedFromFile": None},
            "b": {"sourcedFromFile": "a.json"},
        }

    def test_unique_names_preserve_order(self):
        records = [ValueRecord(name=n) for n in ["b", "a", "b", ""]]
        assert unique_names(records) == ["b", "a"]

    def test_names_with_translations(self):
        records = [
            ValueRecord(name="k", extra={"translation": "first"}, file="1"),
            ValueRecord(name="k", extra={"translation": "second"}, file="2"),
            ValueRecord(name="n"),
        ]
        assert names_with_translations(records) == {"k": "first", "n": None}


class TestMakeShards:
    def test_sorted_and_documented(self):
        shards = make_shards(IndexKind.REGISTERED_ASSETS, {"Zed": {}, "Alpha": {"x": {"sourcedFromFile": None}}})
        assert [s.key for s in shards] == ["Alpha", "Zed"]
        document = shards[0].to_document("1.0", "now")
        assert document == {
            "version": "1.0",
            "generatedAt": "now",
            "indexKind": "registeredAssets",
            "key": "Alpha",
            "values": {"x": {"sourcedFromFile": None}},
        }

    def test_colliding_sanitized_keys_get_suffixes(self):
        shards = make_shards(IndexKind.COSMETICS_BY_TYPE, {"a b": [], "a/b": [], "a_b": []})
        assert [s.relative_path for s in shards] == [
            "indexes/cosmeticDomain/a_b.json",
            "indexes/cosmeticDomain/a_b-2.json",
            "indexes/cosmeticDomain/a_b-3.json",
        ]
