from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from PySide6.QtCore import QEvent, Signal
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QDoubleSpinBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)

from cardforge.core.editor import EditorSession
from cardforge.core.models import CARD_FIELDS, SYNTHETIC_FIELDS, LayerBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyField:
    attr: str
    label: str
    editor: str = "number"  # "number", "text" or "choice"
    choices: Tuple = ()
    minimum: float = -5000
    maximum: float = 5000
    decimals: int = 0
    default: object = 0


def _number(attr, label, minimum=-5000, maximum=5000, decimals=0, default=0):
    return PropertyField(attr, label, "number", (), minimum, maximum, decimals, default)


def _text(attr, label):
    return PropertyField(attr, label, "text", default="")


def _choice(attr, label, *choices):
    return PropertyField(attr, label, "choice", tuple(choices), default="")


SHOW_IF_CHOICES = ("", "cost", "power", "hp", "vp", "effect")
TEXT_FIELDS = tuple(f for f in CARD_FIELDS if f != "id") + SYNTHETIC_FIELDS
BADGE_FIELDS = ("cost", "power", "hp", "vp")

_OPACITY = _number("opacity", "Opacity", 0, 1, 2, default=1)

COMMON_FIELDS = (
    _text("label", "Label"),
    _number("x", "X"),
    _number("y", "Y"),
    _number("width", "Width", 1),
    _number("height", "Height", 1),
    _choice("show_if_field", "Show if", *SHOW_IF_CHOICES),
)

KIND_FIELDS: Dict[str, Tuple[PropertyField, ...]] = {
    "rect": (
        _choice("fill_source", "Fill source", "", "class.primary", "class.secondary"),
        _text("fill", "Fill"),
        _number("corner_radius", "Corner radius", 0),
        _text("stroke", "Stroke"),
        _number("stroke_width", "Stroke width", 0, 100),
        _OPACITY,
    ),
    "text": (
        _choice("field", "Field", *TEXT_FIELDS),
        _number("font_size", "Font size", 1, 400, default=18),
        _text("font_family", "Font"),
        _choice("font_style", "Font style", "normal", "bold", "italic", "bold italic"),
        _text("fill", "Fill"),
        _choice("align", "Align", "left", "center", "right"),
        _number("line_height", "Line height", 0.5, 5, 2, default=1),
        _choice("wrap", "Wrap", "word", "none"),
    ),
    "image": (
        _choice("image_source", "Image source", "art", "frame"),
        _choice("image_fit", "Image fit", "cover", "contain", "fill", "stretch"),
        _OPACITY,
    ),
    "badge": (
        _choice("field", "Field", *BADGE_FIELDS),
        _text("fill", "Fill"),
        _text("text_fill", "Text fill"),
        _number("font_size", "Font size", 1, 400, default=18),
    ),
    "phase-icons": (
        _choice("orientation", "Orientation", "horizontal", "vertical"),
        _number("icon_size", "Icon size", 1, 400, default=24),
        _number("gap", "Gap", 0, 400, default=4),
        _choice("align", "Align", "left", "right"),
        _text("fill", "Fill"),
        _text("text_fill", "Text fill"),
        _number("corner_radius", "Corner radius", 0),
    ),
    "rarity-diamond": (
        _text("stroke", "Stroke"),
        _number("stroke_width", "Stroke width", 0, 100),
        _OPACITY,
    ),
}


class PropertyPanel(QWidget):
    """Editor for the selected layer's properties.

    A field gaining focus snapshots the layer list once; every commit while
    it keeps focus is applied without a further snapshot, so a run of edits
    undoes as one step.
    """

    editFailed = Signal(str)

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session
        self.layer_id: Optional[str] = None
        self.editors: Dict[str, QWidget] = {}
        self._fields: Dict[str, PropertyField] = {}
        self._shown: Dict[str, object] = {}
        self._edit_open = False
        self._form_key = None

        self.layout_ = QVBoxLayout(self)
        self.lbl_title = QLabel("Layer: ---")
        self.layout_.addWidget(self.lbl_title)
        self.form = QWidget()
        self.layout_.addWidget(self.form)
        self.layout_.addStretch()

        session.changed.connect(self.refresh)
        session.store.changed.connect(self.refresh)
        self.refresh()

    # ───────────────────────────────────────────────
    def _row(self, label, widget):
        row = QWidget()
        h = QHBoxLayout(row)
        h.setContentsMargins(0, 0, 0, 0)
        h.addWidget(QLabel(label))
        h.addWidget(widget)
        return row

    def _layer(self) -> Optional[LayerBase]:
        template = self.session.template
        layer_id = self.session.selected_layer_id
        return template.layer(layer_id) if template and layer_id else None

    # ───────────────────────────────────────────────
    # Form building
    # ───────────────────────────────────────────────
    def refresh(self):
        layer = self._layer()
        key = (self.session.active_template_id, layer.id, layer.kind) if layer else None
        if key != self._form_key:
            self._form_key = key
            self._build_form(layer)
        if layer is not None:
            self.load_values(layer)

    def _build_form(self, layer: Optional[LayerBase]):
        self.layout_.removeWidget(self.form)
        self.form.deleteLater()
        self.form = QWidget()
        self.layout_.insertWidget(1, self.form)
        self.editors = {}
        self._fields = {}
        self._shown = {}
        self._edit_open = False
        self.layer_id = layer.id if layer else None

        if layer is None:
            self.lbl_title.setText("Layer: ---")
            return
        self.lbl_title.setText(f"Layer: {layer.display_name} ({layer.kind})")

        form_layout = QVBoxLayout(self.form)
        form_layout.setContentsMargins(0, 0, 0, 0)
        for spec in COMMON_FIELDS + KIND_FIELDS.get(layer.kind, ()):
            editor = self._create_editor(spec)
            editor.installEventFilter(self)
            self.editors[spec.attr] = editor
            self._fields[spec.attr] = spec
            form_layout.addWidget(self._row(spec.label, editor))

    def _create_editor(self, spec: PropertyField) -> QWidget:
        if spec.editor == "number":
            editor = QDoubleSpinBox()
            editor.setRange(spec.minimum, spec.maximum)
            editor.setDecimals(spec.decimals)
            editor.setSingleStep(0.1 if spec.decimals else 1)
            editor.editingFinished.connect(lambda a=spec.attr: self._commit_editor(a))
        elif spec.editor == "text":
            editor = QLineEdit()
            editor.editingFinished.connect(lambda a=spec.attr: self._commit_editor(a))
        else:
            editor = QComboBox()
            for choice in spec.choices:
                editor.addItem(choice or "(none)", choice)
            editor.activated.connect(lambda _index, a=spec.attr: self._commit_editor(a))
        return editor

    # ───────────────────────────────────────────────
    # Values
    # ───────────────────────────────────────────────
    def editor_value(self, attr: str):
        editor = self.editors[attr]
        spec = self._fields[attr]
        if spec.editor == "number":
            value = editor.value()
            return int(round(value)) if spec.decimals == 0 else value
        if spec.editor == "text":
            return editor.text()
        return editor.currentData()

    def load_values(self, layer: LayerBase):
        focused = QApplication.focusWidget()
        for attr, editor in self.editors.items():
            if focused is not None and (editor is focused or editor.isAncestorOf(focused)):
                continue
            spec = self._fields[attr]
            value = getattr(layer, attr, None)
            if value is None:
                value = spec.default
            editor.blockSignals(True)
            if spec.editor == "number":
                editor.setValue(float(value))
            elif spec.editor == "text":
                editor.setText(str(value))
            else:
                index = editor.findData(value)
                editor.setCurrentIndex(index if index >= 0 else 0)
            editor.blockSignals(False)
            self._shown[attr] = self.editor_value(attr)

    def set_value(self, attr: str, value) -> None:
        """Put ``value`` into the field's editor and commit it."""
        editor = self.editors[attr]
        spec = self._fields[attr]
        if spec.editor == "number":
            editor.setValue(float(value))
        elif spec.editor == "text":
            editor.setText(value)
        else:
            editor.setCurrentIndex(editor.findData(value))
        self._commit_editor(attr)

    # ───────────────────────────────────────────────
    # Undo integration
    # ───────────────────────────────────────────────
    def eventFilter(self, obj, event):  # noqa: N802
        if event.type() == QEvent.FocusIn and self.layer_id is not None:
            self.begin_edit()
        elif event.type() == QEvent.FocusOut:
            attr = self._attr_of(obj)
            if attr is not None:
                self._commit_editor(attr)
            self._edit_open = False
        return super().eventFilter(obj, event)

    def _attr_of(self, editor) -> Optional[str]:
        for attr, candidate in self.editors.items():
            if candidate is editor:
                return attr
        return None

    def begin_edit(self):
        if not self._edit_open:
            self._edit_open = True
            self.session.begin_property_edit()

    def _commit_editor(self, attr: str):
        if self.layer_id is None:
            return
        value = self.editor_value(attr)
        if value == self._shown.get(attr):
            return
        stored = None if value == "" else value
        try:
            self.session.update_layer(self.layer_id, record=not self._edit_open, **{attr: stored})
        except ValueError as exc:
            logger.warning("Rejected %s=%r on layer %s: %s", attr, stored, self.layer_id, exc)
            self.editFailed.emit(str(exc))
            layer = self._layer()
            if layer is not None:
                self.load_values(layer)
            return
        self._shown[attr] = value
