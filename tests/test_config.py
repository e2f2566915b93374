"""Tests for export settings."""

import json
import os

import pytest

from asset_snapshot.config import ExportSettings, SettingsError, load_settings, resolve_output_directory


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.json").export_path == ""
        assert load_settings(None).export_path == ""

    def test_export_path_key(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"ExportPath": "/tmp/snap"}), encoding="utf-8")
        assert load_settings(path).export_path == "/tmp/snap"

    def test_null_document_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("null", encoding="utf-8")
        assert load_settings(path) == ExportSettings()

    @pytest.mark.parametrize("content", ["{broken", "[]", '{"ExportPath": 3}', '{"Other": "x"}'])
    def test_bad_settings_raise(self, tmp_path, content):
        path = tmp_path / "settings.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)


class TestResolveOutputDirectory:
    @pytest.mark.parametrize("override", ["", "   "])
    def test_blank_uses_data_directory(self, tmp_path, override):
        settings = ExportSettings(export_path=override)
        assert resolve_output_directory(settings, tmp_path) == tmp_path

    def test_override_is_normalized(self, tmp_path):
        settings = ExportSettings(ExportPath=str(tmp_path / "a" / ".." / "b"))
        resolved = resolve_output_directory(settings, "/ignored")
        assert str(resolved) == os.path.normpath(str(tmp_path / "b"))
