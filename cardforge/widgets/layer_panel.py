from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QHBoxLayout, QListWidget, QListWidgetItem, QPushButton, QVBoxLayout, QWidget

from cardforge.core.editor import EditorSession
from cardforge.core.models import LayerBase


def layer_caption(layer: LayerBase) -> str:
    text = layer.label or getattr(layer, "field", None) or layer.kind
    if layer.is_hidden:
        text += "  (hidden)"
    if layer.locked:
        text += "  (locked)"
    return text


class LayerPanel(QWidget):
    """Layer stack of the active template, top layer first."""

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session
        self._shown = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.list = QListWidget()
        self.list.currentItemChanged.connect(self._on_current_changed)
        layout.addWidget(self.list)

        buttons = QHBoxLayout()
        self.up_button = QPushButton("Up")
        self.up_button.clicked.connect(lambda: self._move(1))
        self.down_button = QPushButton("Down")
        self.down_button.clicked.connect(lambda: self._move(-1))
        self.visible_button = QPushButton("Show/Hide")
        self.visible_button.clicked.connect(self.toggle_visible)
        self.lock_button = QPushButton("Lock")
        self.lock_button.clicked.connect(self.toggle_locked)
        for button in (self.up_button, self.down_button, self.visible_button, self.lock_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)

        session.changed.connect(self.refresh)
        session.store.changed.connect(self.refresh)
        self.refresh()

    # ───────────────────────────────────────────────
    def layer_ids(self):
        return [self.list.item(row).data(Qt.UserRole) for row in range(self.list.count())]

    def selected_layer(self) -> Optional[LayerBase]:
        template = self.session.template
        layer_id = self.session.selected_layer_id
        return template.layer(layer_id) if template and layer_id else None

    def refresh(self):
        template = self.session.template
        layers = list(reversed(template.layers)) if template else []
        shown = tuple((layer.id, layer_caption(layer)) for layer in layers)
        self.list.blockSignals(True)
        if shown != self._shown:
            self._shown = shown
            self.list.clear()
            for layer_id, caption in shown:
                item = QListWidgetItem(caption)
                item.setData(Qt.UserRole, layer_id)
                self.list.addItem(item)
        ids = [layer_id for layer_id, _ in shown]
        selected = self.session.selected_layer_id
        self.list.setCurrentRow(ids.index(selected) if selected in ids else -1)
        self.list.blockSignals(False)

        layer = self.selected_layer()
        for button in (self.up_button, self.down_button, self.visible_button, self.lock_button):
            button.setEnabled(layer is not None)
        self.lock_button.setText("Unlock" if layer is not None and layer.locked else "Lock")

    # ───────────────────────────────────────────────
    def _on_current_changed(self, current, _previous):
        self.session.select_layer(current.data(Qt.UserRole) if current is not None else None)

    def _move(self, steps: int):
        layer = self.selected_layer()
        if layer is not None:
            self.session.move_layer(layer.id, steps)

    def toggle_visible(self):
        layer = self.selected_layer()
        if layer is not None:
            self.session.update_layer(layer.id, visible=layer.is_hidden)

    def toggle_locked(self):
        layer = self.selected_layer()
        if layer is not None:
            self.session.update_layer(layer.id, locked=not layer.locked)
