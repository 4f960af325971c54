from __future__ import annotations

import logging
import os

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QAction, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMenu,
    QPushButton,
    QScrollArea,
    QTabWidget,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from cardforge.core.editor import EditorSession
from cardforge.core.exporter import export_all, render_all
from cardforge.core.card_io import CardListLoader
from cardforge.core.image_loader import AssetCache, preload_art_images, preload_frame_images
from cardforge.core.packaging import export_pdf_from_list
from cardforge.core.project import LAYER_KINDS, ProjectStore
from cardforge.core.renderer import CardRenderer
from cardforge.core.settings import SNAP_SIZES, EditorSettings
from cardforge.core.template_io import export_template, import_template
from cardforge.ui.error_window import ErrorLogWidget
from cardforge.widgets.designer_canvas import DesignerCanvas
from cardforge.widgets.layer_panel import LayerPanel
from cardforge.widgets.preview_grid import PreviewGrid
from cardforge.widgets.property_panel import PropertyPanel

logger = logging.getLogger(__name__)


class ErrorNotifier(QObject):
    errorOccurred = Signal(str, str, str)

    def emit_error(self, title: str, message: str, level: str = "error"):
        self.errorOccurred.emit(title, message, level)


class MainWindow(QMainWindow):
    def __init__(self, store: ProjectStore, settings: EditorSettings | None = None):
        super().__init__()
        self.store = store
        self.settings = settings or EditorSettings()
        self.session = EditorSession(store, self.settings)
        self.error_notifier = ErrorNotifier()

        self.setWindowTitle("Cardforge")
        self.setMinimumSize(800, 600)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        self.tabs.addTab(self._build_designer_tab(), "Designer")
        self.preview_grid = PreviewGrid(CardRenderer(store.palette, store.assets).render)
        self.tabs.addTab(self.preview_grid, "Preview")
        self.error_log_tab = ErrorLogWidget()
        self.error_notifier.errorOccurred.connect(self.error_log_tab.add_entry)
        self.tabs.addTab(self.error_log_tab, "Errors")
        self.tabs.currentChanged.connect(self._on_tab_changed)

        self.undo_shortcut = QShortcut(QKeySequence(QKeySequence.Undo), self)
        self.undo_shortcut.activated.connect(self.session.undo)
        self.redo_shortcut = QShortcut(QKeySequence(QKeySequence.Redo), self)
        self.redo_shortcut.activated.connect(self.session.redo)

        self.session.changed.connect(self._sync_controls)
        self.store.changed.connect(self._sync_lists)
        self._sync_lists()
        if store.templates:
            self.session.set_active_template(store.templates[0].id)
        self._sync_controls()

    # ------------------------------------------------------------------
    def _build_designer_tab(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout()

        controls = QHBoxLayout()
        self.template_combo = QComboBox()
        self.template_combo.currentIndexChanged.connect(self._on_template_chosen)
        controls.addWidget(QLabel("Template"))
        controls.addWidget(self.template_combo)

        self.card_combo = QComboBox()
        self.card_combo.currentIndexChanged.connect(self._on_card_chosen)
        controls.addWidget(QLabel("Preview"))
        controls.addWidget(self.card_combo)

        self.add_layer_button = QToolButton()
        self.add_layer_button.setText("Add Layer")
        self.add_layer_button.setPopupMode(QToolButton.InstantPopup)
        menu = QMenu(self.add_layer_button)
        for kind in LAYER_KINDS:
            action = QAction(kind, menu)
            action.triggered.connect(lambda _checked=False, k=kind: self.session.add_layer(k))
            menu.addAction(action)
        self.add_layer_button.setMenu(menu)
        controls.addWidget(self.add_layer_button)

        self.delete_layer_button = QPushButton("Delete Layer")
        self.delete_layer_button.clicked.connect(self._delete_selected)
        controls.addWidget(self.delete_layer_button)

        self.undo_button = QPushButton("Undo")
        self.undo_button.clicked.connect(self.session.undo)
        controls.addWidget(self.undo_button)
        self.redo_button = QPushButton("Redo")
        self.redo_button.clicked.connect(self.session.redo)
        controls.addWidget(self.redo_button)

        self.snap_checkbox = QCheckBox("Snap")
        self.snap_checkbox.setChecked(self.session.snap_enabled)
        self.snap_checkbox.toggled.connect(self.session.set_snap_enabled)
        controls.addWidget(self.snap_checkbox)

        self.grid_combo = QComboBox()
        for size in SNAP_SIZES:
            self.grid_combo.addItem(f"{size}px", size)
        self.grid_combo.setCurrentIndex(SNAP_SIZES.index(self.session.snap_grid_size))
        self.grid_combo.currentIndexChanged.connect(
            lambda idx: self.session.set_snap_grid_size(self.grid_combo.itemData(idx))
        )
        controls.addWidget(self.grid_combo)
        controls.addStretch(1)
        layout.addLayout(controls)

        body = QHBoxLayout()
        self.canvas = DesignerCanvas(self.session)
        self.canvas.layerSelected.connect(self._on_layer_selected)
        body.addWidget(self.canvas, 1)

        side = QVBoxLayout()
        self.layer_panel = LayerPanel(self.session)
        side.addWidget(self.layer_panel)
        self.property_panel = PropertyPanel(self.session)
        self.property_panel.editFailed.connect(lambda message: self._emit_error("Layer", message, level="warning"))
        properties = QScrollArea()
        properties.setWidgetResizable(True)
        properties.setWidget(self.property_panel)
        side.addWidget(properties)
        body.addLayout(side)
        layout.addLayout(body)

        actions = QHBoxLayout()
        self.cards_button = QPushButton("Load Cards")
        self.cards_button.clicked.connect(self.choose_cards_file)
        actions.addWidget(self.cards_button)
        self.import_button = QPushButton("Import Template")
        self.import_button.clicked.connect(self.import_template_file)
        actions.addWidget(self.import_button)
        self.export_template_button = QPushButton("Export Template")
        self.export_template_button.clicked.connect(self.export_template_file)
        actions.addWidget(self.export_template_button)
        self.export_button = QPushButton("Export All")
        self.export_button.clicked.connect(self.export_archive)
        actions.addWidget(self.export_button)
        self.art_button = QPushButton("Art Folder")
        self.art_button.clicked.connect(self.choose_art_folder)
        actions.addWidget(self.art_button)
        self.frame_button = QPushButton("Frame Image")
        self.frame_button.clicked.connect(self.choose_frame_image)
        actions.addWidget(self.frame_button)
        self.export_pdf_button = QPushButton("Export PDF")
        self.export_pdf_button.clicked.connect(self.export_pdf)
        actions.addWidget(self.export_pdf_button)
        actions.addStretch(1)
        layout.addLayout(actions)

        page.setLayout(layout)
        return page

    # ------------------------------------------------------------------
    def _sync_lists(self):
        self._fill_combo(self.template_combo, [(t.name, t.id) for t in self.store.templates],
                         self.session.active_template_id)
        self._fill_combo(self.card_combo, [("(no card)", None)] + [(c.name, c.id) for c in self.store.cards],
                         self.session.preview_card_id)

    @staticmethod
    def _fill_combo(combo: QComboBox, entries, current):
        combo.blockSignals(True)
        combo.clear()
        for text, data in entries:
            combo.addItem(text, data)
        index = combo.findData(current) if current is not None else -1
        combo.setCurrentIndex(index if index >= 0 else 0)
        combo.blockSignals(False)

    def _sync_controls(self):
        history = self.session.history
        self.undo_button.setEnabled(history.can_undo)
        self.redo_button.setEnabled(history.can_redo)
        self.delete_layer_button.setEnabled(self.session.selected_layer_id is not None)
        has_template = self.session.template is not None
        self.add_layer_button.setEnabled(has_template)
        self.export_template_button.setEnabled(has_template)
        self.frame_button.setEnabled(has_template)

    def _on_template_chosen(self, index: int):
        self.session.set_active_template(self.template_combo.itemData(index))

    def _on_card_chosen(self, index: int):
        self.session.set_preview_card(self.card_combo.itemData(index))

    def _on_tab_changed(self, index: int):
        if self.tabs.widget(index) is self.preview_grid:
            self.preview_grid.set_cards(self.store.cards, self.store.templates)

    def _on_layer_selected(self, layer_id: str):
        template = self.session.template
        layer = template.layer(layer_id) if template and layer_id else None
        self.statusBar().showMessage(layer.display_name if layer else "")

    def _delete_selected(self):
        if self.session.selected_layer_id:
            self.session.delete_layer(self.session.selected_layer_id)

    # ------------------------------------------------------------------
    def choose_art_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Art Folder", self.settings.art_folder)
        if folder:
            self.load_art_folder(folder)

    def load_art_folder(self, folder: str) -> int:
        """Load card art named after each card; returns how many images are available."""
        self.settings.art_folder = folder
        preload_art_images(folder, self.store.cards, AssetCache(maps=self.store.assets))
        self.canvas.invalidate()
        return len(self.store.assets.art)

    def choose_cards_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Load Cards", self.settings.cards_file, "JSON (*.json)")
        if path:
            self.load_cards_file(path)

    def load_cards_file(self, path: str) -> int:
        """Replace the project's cards with the list in ``path``; returns the card count."""
        try:
            cards = CardListLoader(path).load()
        except Exception as exc:
            self._emit_error("Load cards failed", str(exc))
            return 0
        self.settings.cards_file = path
        self.store.set_cards(cards)
        if self.settings.art_folder:
            preload_art_images(self.settings.art_folder, cards, AssetCache(maps=self.store.assets))
        if self.tabs.currentWidget() is self.preview_grid:
            self.preview_grid.set_cards(self.store.cards, self.store.templates)
        self.statusBar().showMessage(f"Loaded {len(cards)} cards from {path}")
        return len(cards)

    def choose_frame_image(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Frame Image", "", "Images (*.png *.jpg *.jpeg *.webp *.psd)"
        )
        if path:
            self.load_frame_image(path)

    def load_frame_image(self, path: str) -> bool:
        """Use the image at ``path`` as the active template's frame."""
        template = self.session.template
        if template is None:
            return False
        cache = AssetCache(maps=self.store.assets)
        cache.forget_frame(template.id)
        preload_frame_images({template.id: path}, cache)
        if template.id not in self.store.assets.frames:
            self._emit_error("Frame image", f"Could not load {path}", level="warning")
            return False
        self.canvas.invalidate()
        return True

    def import_template_file(self):
        path, _ = QFileDialog.getOpenFileName(self, "Import Template", "", "JSON (*.json)")
        if not path:
            return
        try:
            template = import_template(path)
        except Exception as exc:
            self._emit_error("Import failed", str(exc))
            return
        self.store.add_template(template)
        self.session.set_active_template(template.id)

    def export_template_file(self):
        template = self.session.template
        if template is None:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export Template", f"{template.name}.json", "JSON (*.json)")
        if not path:
            return
        try:
            export_template(template, path)
        except Exception as exc:
            self._emit_error("Export failed", str(exc))

    def export_archive(self):
        default_path = os.path.join(self.settings.export_dir, "cards.zip")
        path, _ = QFileDialog.getSaveFileName(self, "Export All", default_path, "Zip (*.zip)")
        if not path:
            return
        try:
            result = export_all(
                self.store.cards,
                self.store.templates,
                self.store.palette,
                self.store.assets,
                on_progress=lambda p: self.statusBar().showMessage(f"{p.phase} {p.current}/{p.total}"),
            )
            with open(path, "wb") as f:
                f.write(result.archive)
        except Exception as exc:
            logger.exception("Batch export failed")
            self._emit_error("Export failed", str(exc))
            return
        for warning in result.warnings:
            self._emit_error("Export", warning, level="warning")
        self.statusBar().showMessage(f"Exported {len(result.rendered)} cards to {path}")

    def export_pdf(self):
        default_path = os.path.join(self.settings.export_dir, "cards.pdf")
        path, _ = QFileDialog.getSaveFileName(self, "Export PDF", default_path, "PDF (*.pdf)")
        if not path:
            return
        try:
            rendered, warnings = render_all(self.store.cards, self.store.templates, self.store.palette, self.store.assets)
            export_pdf_from_list(rendered, path)
        except Exception as exc:
            self._emit_error("Export failed", str(exc))
            return
        for warning in warnings:
            self._emit_error("Export", warning, level="warning")

    def _emit_error(self, title: str, message: str, level: str = "error"):
        self.error_notifier.emit_error(title, message, level)
