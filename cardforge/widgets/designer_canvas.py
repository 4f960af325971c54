"""Interactive QGraphicsView-based template designer."""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from PIL.ImageQt import ImageQt
from PySide6.QtCore import QPointF, QRectF, Qt, QTimer, Signal
from PySide6.QtGui import QBrush, QColor, QFont, QPainter, QPen, QPixmap, QPolygonF, QTextOption
from PySide6.QtWidgets import (
    QApplication,
    QGraphicsItem,
    QGraphicsPixmapItem,
    QGraphicsPolygonItem,
    QGraphicsRectItem,
    QGraphicsScene,
    QGraphicsTextItem,
    QGraphicsView,
)

from cardforge.core.editor import EditorSession
from cardforge.core.layer_helpers import layer_bounds
from cardforge.core.models import PhaseIconsLayer
from cardforge.core.scene import GroupNode, ImageNode, PolygonNode, RectNode, SceneNode, TextNode

HOVER_COLOR = QColor(255, 255, 255)
SELECTION_COLOR = QColor("#6366f1")
OVERLAY_Z = 1000


def _qcolor(value: Optional[str]) -> Optional[QColor]:
    if not value or value == "transparent":
        return None
    color = QColor(value)
    return color if color.isValid() else None


class _GroupItem(QGraphicsItem):
    """Contentless parent used for group nodes."""

    def __init__(self, parent: Optional[QGraphicsItem] = None):
        super().__init__(parent)
        self.setFlag(QGraphicsItem.ItemHasNoContents, True)

    def boundingRect(self) -> QRectF:  # noqa: N802
        return QRectF()

    def paint(self, painter, option, widget=None):
        pass


class _RoundedRectItem(QGraphicsRectItem):
    def __init__(self, rect: QRectF, radius: float, parent: Optional[QGraphicsItem] = None):
        super().__init__(rect, parent)
        self.radius = radius

    def paint(self, painter: QPainter, option, widget=None):  # type: ignore[override]
        if not self.radius:
            super().paint(painter, option, widget)
            return
        painter.setPen(self.pen())
        painter.setBrush(self.brush())
        painter.drawRoundedRect(self.rect(), self.radius, self.radius)


def _passive(item: QGraphicsItem) -> QGraphicsItem:
    item.setAcceptedMouseButtons(Qt.NoButton)
    item.setAcceptHoverEvents(False)
    return item


def create_node_item(node: SceneNode, parent: Optional[QGraphicsItem] = None) -> QGraphicsItem:
    """Translate a scene node (and its children) into graphics items."""
    if isinstance(node, GroupNode):
        item = _GroupItem(parent)
        for child in node.children:
            create_node_item(child, item)
    elif isinstance(node, RectNode):
        item = _RoundedRectItem(QRectF(0, 0, node.width, node.height), node.corner_radius, parent)
        fill = _qcolor(node.fill)
        item.setBrush(QBrush(fill) if fill else Qt.NoBrush)
        stroke = _qcolor(node.stroke)
        item.setPen(QPen(stroke, node.stroke_width) if stroke and node.stroke_width else Qt.NoPen)
    elif isinstance(node, TextNode):
        item = QGraphicsTextItem(parent)
        item.setPlainText(node.text)
        font = QFont(node.font_family)
        font.setPixelSize(max(1, int(node.font_size)))
        font.setBold("bold" in node.font_style)
        font.setItalic("italic" in node.font_style)
        item.setFont(font)
        item.setDefaultTextColor(_qcolor(node.fill) or QColor("#ffffff"))
        item.document().setDocumentMargin(0)
        option = QTextOption(
            {"center": Qt.AlignHCenter, "right": Qt.AlignRight}.get(node.align, Qt.AlignLeft)
        )
        option.setWrapMode(QTextOption.NoWrap if node.wrap == "none" else QTextOption.WordWrap)
        item.document().setDefaultTextOption(option)
        item.setTextWidth(node.width)
        if node.valign == "middle":
            offset = (node.height - item.document().size().height()) / 2
            item.setPos(node.x, node.y + offset)
            item.setOpacity(node.opacity)
            return _passive(item)
    elif isinstance(node, ImageNode):
        pixmap = QPixmap.fromImage(ImageQt(node.image))
        item = QGraphicsPixmapItem(pixmap, parent)
        item.setTransformationMode(Qt.SmoothTransformation)
    elif isinstance(node, PolygonNode):
        points = [
            QPointF(
                node.radius * math.cos(-math.pi / 2 + 2 * math.pi * i / node.sides),
                node.radius * math.sin(-math.pi / 2 + 2 * math.pi * i / node.sides),
            )
            for i in range(node.sides)
        ]
        item = QGraphicsPolygonItem(QPolygonF(points), parent)
        fill = _qcolor(node.fill)
        item.setBrush(QBrush(fill) if fill else Qt.NoBrush)
        stroke = _qcolor(node.stroke)
        item.setPen(QPen(stroke, node.stroke_width) if stroke and node.stroke_width else Qt.NoPen)
    else:
        raise TypeError(f"Unsupported scene node: {type(node).__name__}")
    item.setPos(node.x, node.y)
    item.setOpacity(node.opacity)
    return _passive(item)


class LayerItem(QGraphicsRectItem):
    """Top-level, hit-testable item for one template layer."""

    def __init__(self, canvas: "DesignerCanvas", layer_id: str, node: SceneNode, bounds: QRectF, movable: bool):
        super().__init__(bounds)
        self.canvas = canvas
        self.layer_id = layer_id
        self.setPen(Qt.NoPen)
        self.setBrush(Qt.NoBrush)
        self.setAcceptHoverEvents(True)
        self.setFlag(QGraphicsItem.ItemIsMovable, movable)
        self.setFlag(QGraphicsItem.ItemSendsGeometryChanges, True)
        self.setPos(node.x, node.y)

        if isinstance(node, GroupNode):
            self.setOpacity(node.opacity)
            for child in node.children:
                create_node_item(child, self)
        else:
            child = create_node_item(node, self)
            # node coordinates are absolute; the child sits at the layer origin
            child.setPos(child.pos() - QPointF(node.x, node.y))

    # ------------------------------------------------------------------
    def itemChange(self, change: QGraphicsItem.GraphicsItemChange, value):  # type: ignore[override]
        if change == QGraphicsItem.ItemPositionChange and self.canvas.session.dragging is not None:
            shift = bool(QApplication.keyboardModifiers() & Qt.ShiftModifier)
            x, y = self.canvas.session.drag_bound(value.x(), value.y(), shift)
            return QPointF(x, y)
        return super().itemChange(change, value)

    # ------------------------------------------------------------------
    def hoverEnterEvent(self, event):  # noqa: N802
        self.canvas.session.hover_enter(self.layer_id)
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event):  # noqa: N802
        self.canvas.session.hover_leave(self.layer_id)
        super().hoverLeaveEvent(event)

    def mousePressEvent(self, event):  # noqa: N802
        session = self.canvas.session
        session.click_layer(self.layer_id)
        if event.button() == Qt.LeftButton:
            session.begin_drag(self.layer_id)
        super().mousePressEvent(event)
        event.accept()

    def mouseReleaseEvent(self, event):  # noqa: N802
        super().mouseReleaseEvent(event)
        self.canvas.session.end_drag(self.pos().x(), self.pos().y())


class DesignerCanvas(QGraphicsView):
    """Live editing canvas for the session's active template."""

    layerSelected = Signal(str)

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session
        self.layer_items: Dict[str, LayerItem] = {}

        self._scene = QGraphicsScene(self)
        self.setScene(self._scene)
        self._background_color = QColor(26, 26, 26)

        self._card_rect_item = QGraphicsRectItem(0, 0, 0, 0)
        self._card_rect_item.setPen(QPen(QColor(240, 240, 240), 1))
        self._card_rect_item.setBrush(Qt.NoBrush)
        self._card_rect_item.setZValue(-5)
        self._scene.addItem(_passive(self._card_rect_item))

        self._hover_item = self._make_overlay(QPen(HOVER_COLOR, 1), 0.35)
        selection_pen = QPen(SELECTION_COLOR, 2)
        selection_pen.setDashPattern([4, 4])
        self._selection_item = self._make_overlay(selection_pen, 1.0)

        self.setRenderHint(QPainter.Antialiasing, True)
        self.setRenderHint(QPainter.SmoothPixmapTransform, True)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setMouseTracking(True)

        self._scene_key = None
        self._scene_dirty = True
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(0)
        self._refresh_timer.timeout.connect(self.refresh)
        self._last_selected: Optional[str] = None

        session.changed.connect(self._schedule_refresh)
        session.store.changed.connect(self.invalidate)
        self.refresh()

    # ------------------------------------------------------------------
    def _make_overlay(self, pen: QPen, opacity: float) -> QGraphicsRectItem:
        item = QGraphicsRectItem()
        item.setPen(pen)
        item.setBrush(Qt.NoBrush)
        item.setOpacity(opacity)
        item.setZValue(OVERLAY_Z)
        item.setVisible(False)
        self._scene.addItem(_passive(item))
        return item

    # ------------------------------------------------------------------
    def invalidate(self):
        self._scene_dirty = True
        self._schedule_refresh()

    def _schedule_refresh(self):
        # rebuilding inside an item's own event handler would delete it mid-event
        if not self._refresh_timer.isActive():
            self._refresh_timer.start()

    # ------------------------------------------------------------------
    def refresh(self):
        session = self.session
        key = (session.active_template_id, session.preview_card_id, session.snap_enabled, session.snap_grid_size)
        if (self._scene_dirty or key != self._scene_key) and session.dragging is None:
            self._rebuild()
            self._scene_key = key
            self._scene_dirty = False
        self._update_overlays()
        if session.selected_layer_id != self._last_selected:
            self._last_selected = session.selected_layer_id
            self.layerSelected.emit(session.selected_layer_id or "")

    # ------------------------------------------------------------------
    def _rebuild(self):
        for item in self.layer_items.values():
            self._scene.removeItem(item)
        self.layer_items.clear()

        template = self.session.template
        if template is None:
            self._card_rect_item.setRect(QRectF())
            return
        rect = QRectF(0, 0, template.width, template.height)
        self._card_rect_item.setRect(rect)
        self._scene.setSceneRect(rect.adjusted(-100, -100, 100, 100))

        nodes = {node.layer_id: node for node in self.session.scene_nodes()}
        phase_count = len(self.session.store.palette.phases_for(self.session.preview_card))
        for z, layer in enumerate(template.layers):
            node = nodes.get(layer.id)
            if node is None:
                continue
            bx, by, bw, bh = layer_bounds(layer, phase_count if isinstance(layer, PhaseIconsLayer) else 0)
            bounds = QRectF(bx - layer.x, by - layer.y, bw, bh)
            item = LayerItem(self, layer.id, node, bounds, movable=not layer.locked)
            item.setZValue(z)
            self._scene.addItem(item)
            self.layer_items[layer.id] = item
        self.viewport().update()

    # ------------------------------------------------------------------
    def _update_overlays(self):
        self._hover_item.setVisible(False)
        self._selection_item.setVisible(False)
        for overlay in self.session.overlays():
            item = self._hover_item if overlay.style == "hover" else self._selection_item
            item.setRect(QRectF(overlay.x, overlay.y, overlay.width, overlay.height))
            item.setVisible(True)

    # ------------------------------------------------------------------
    def overlay_items(self) -> List[QGraphicsRectItem]:
        return [item for item in (self._hover_item, self._selection_item) if item.isVisible()]

    # ------------------------------------------------------------------
    def mousePressEvent(self, event):  # type: ignore[override]
        hit = any(isinstance(item.topLevelItem(), LayerItem) for item in self.items(event.position().toPoint()))
        if not hit:
            self.session.click_background()
        super().mousePressEvent(event)

    # ------------------------------------------------------------------
    def drawBackground(self, painter: QPainter, rect: QRectF):  # type: ignore[override]
        painter.fillRect(rect, self._background_color)

    # ------------------------------------------------------------------
    def drawForeground(self, painter: QPainter, rect: QRectF):  # type: ignore[override]
        template = self.session.template
        if not self.session.snap_enabled or template is None:
            return
        grid = self.session.snap_grid_size
        pen = QPen(QColor(255, 255, 255, 38), 0)
        painter.setPen(pen)
        for x in range(0, int(template.width) + 1, grid):
            painter.drawLine(QPointF(x, 0), QPointF(x, template.height))
        for y in range(0, int(template.height) + 1, grid):
            painter.drawLine(QPointF(0, y), QPointF(template.width, y))

    # ------------------------------------------------------------------
    def wheelEvent(self, event):  # type: ignore[override]
        if event.modifiers() & Qt.ControlModifier:
            factor = 1.15 if event.angleDelta().y() > 0 else 0.87
            self.scale(factor, factor)
            event.accept()
            return
        super().wheelEvent(event)

    # ------------------------------------------------------------------
    def fit_card_to_view(self):
        self.fitInView(self._card_rect_item, Qt.KeepAspectRatio)
