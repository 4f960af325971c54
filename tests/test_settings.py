import json

import pytest

from cardforge.core.errors import SettingsError
from cardforge.core.settings import EditorSettings, load_settings, save_settings


class TestEditorSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "none.json"))
        assert settings == EditorSettings()
        assert (settings.default_canvas_width, settings.default_canvas_height) == (375, 523)

    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "conf" / "settings.json")
        save_settings(EditorSettings(snap_enabled=True, snap_grid_size=20, art_folder="art"), path)
        loaded = load_settings(path)
        assert loaded.snap_enabled
        assert loaded.snap_grid_size == 20
        assert loaded.art_folder == "art"

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"snap_enabled": True, "theme": "dark"}), encoding="utf-8")
        assert load_settings(str(path)).snap_enabled

    def test_unsupported_grid_size_is_coerced(self):
        assert EditorSettings(snap_grid_size=7).snap_grid_size == 5

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
    def test_bad_files(self, tmp_path, content):
        path = tmp_path / "settings.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(str(path))
