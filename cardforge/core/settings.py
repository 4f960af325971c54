"""Editor settings persisted as a small JSON file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

from .errors import SettingsError

logger = logging.getLogger(__name__)

SNAP_SIZES = (1, 5, 10, 20)


@dataclass
class EditorSettings:
    snap_enabled: bool = False
    snap_grid_size: int = 5
    default_canvas_width: int = 375
    default_canvas_height: int = 523
    export_dir: str = "export"
    art_folder: str = ""
    cards_file: str = ""
    log_level: str = "INFO"

    def __post_init__(self):
        if self.snap_grid_size not in SNAP_SIZES:
            logger.warning("Unsupported grid size %r, using 5", self.snap_grid_size)
            self.snap_grid_size = 5


def load_settings(path: str) -> EditorSettings:
    """Read settings; a missing file gives the defaults, unknown keys are ignored."""
    if not path or not os.path.exists(path):
        return EditorSettings()
    try:
        with open(path, encoding="utf-8") as f:
            loaded = json.load(f)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file is not valid JSON: {exc}") from exc
    if not isinstance(loaded, dict):
        raise SettingsError("Settings file must contain a JSON object")
    known = {f.name for f in fields(EditorSettings)}
    return EditorSettings(**{k: v for k, v in loaded.items() if k in known})


def save_settings(settings: EditorSettings, path: str) -> str:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(settings), f, ensure_ascii=False, indent=2)
    return path
