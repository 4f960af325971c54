import logging
import os
import sys

from PySide6.QtWidgets import QApplication

from cardforge.core.errors import CardforgeError
from cardforge.core.project import ProjectStore, new_blank_template
from cardforge.core.settings import load_settings, save_settings
from cardforge.core.template_io import import_template
from cardforge.ui.main_window import MainWindow

SETTINGS_FILE = os.environ.get("CARDFORGE_SETTINGS", "cardforge_settings.json")

logger = logging.getLogger(__name__)


def build_store(template_paths, settings) -> ProjectStore:
    templates = []
    for path in template_paths:
        try:
            templates.append(import_template(path))
        except (CardforgeError, OSError) as exc:
            logger.error("Could not load template %s: %s", path, exc)
    if not templates:
        templates.append(new_blank_template(width=settings.default_canvas_width, height=settings.default_canvas_height))
    return ProjectStore(templates=templates)


def main(argv=None):
    argv = list(sys.argv if argv is None else argv)
    settings = load_settings(SETTINGS_FILE)
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(argv)
    window = MainWindow(build_store(argv[1:], settings), settings)
    if settings.cards_file:
        window.load_cards_file(settings.cards_file)
    elif settings.art_folder:
        window.load_art_folder(settings.art_folder)
    window.show()
    window.canvas.fit_card_to_view()
    status = app.exec()
    settings.snap_enabled = window.session.snap_enabled
    settings.snap_grid_size = window.session.snap_grid_size
    save_settings(window.settings, SETTINGS_FILE)
    return status


if __name__ == "__main__":
    sys.exit(main())
