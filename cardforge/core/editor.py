"""Per-document editing state: selection, hover, drag constraints and undoable edits."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .events import EventChannel
from .history import Snapshot, UndoHistory, take_snapshot
from .layer_helpers import layer_bounds
from .models import CardData, LayerBase, PhaseIconsLayer, Template
from .project import ProjectStore, default_layer
from .scene import RenderContext, build_scene, is_layer_drawn
from .settings import SNAP_SIZES, EditorSettings

logger = logging.getLogger(__name__)


def snap_to_grid(value: float, size: float) -> float:
    # half-up rounding so that 5 snaps to 10 on a 10px grid
    return math.floor(value / size + 0.5) * size


def constrain_drag(
    start: Tuple[float, float],
    pos: Tuple[float, float],
    shift: bool = False,
    snap_enabled: bool = False,
    grid: float = 5,
) -> Tuple[float, float]:
    """Apply axis lock (shift) and then grid snapping to a dragged position.

    With axis lock the pinned coordinate keeps its drag-start value exactly.
    """
    x, y = pos
    pinned_x = pinned_y = False
    if shift:
        if abs(x - start[0]) >= abs(y - start[1]):
            y, pinned_y = start[1], True
        else:
            x, pinned_x = start[0], True
    if snap_enabled and grid > 0:
        if not pinned_x:
            x = snap_to_grid(x, grid)
        if not pinned_y:
            y = snap_to_grid(y, grid)
    return x, y


@dataclass
class Overlay:
    layer_id: str
    style: str  # "hover" (solid) or "selection" (dashed)
    x: float
    y: float
    width: float
    height: float


@dataclass
class DragState:
    layer_id: str
    start_x: float
    start_y: float
    before: Snapshot
    live_x: float
    live_y: float

    @property
    def moved(self) -> bool:
        return (self.live_x, self.live_y) != (self.start_x, self.start_y)


class EditorSession:
    """Editor state for the active template.

    Every undoable change goes through this object, which pushes the layer
    list as it was immediately before the change.
    """

    def __init__(self, store: ProjectStore, settings: Optional[EditorSettings] = None):
        settings = settings or EditorSettings()
        self.store = store
        self.active_template_id: Optional[str] = None
        self.selected_layer_id: Optional[str] = None
        self.hovered_layer_id: Optional[str] = None
        self.preview_card_id: Optional[str] = None
        self.snap_enabled = settings.snap_enabled
        self.snap_grid_size = settings.snap_grid_size
        self.history = UndoHistory(store.layers, store.set_template_layers)
        self.changed = EventChannel("editor.changed")
        self._drag: Optional[DragState] = None

    # ------------------------------------------------------------------
    @property
    def template(self) -> Optional[Template]:
        return self.store.template(self.active_template_id)

    @property
    def preview_card(self) -> Optional[CardData]:
        return self.store.card(self.preview_card_id)

    @property
    def dragging(self) -> Optional[DragState]:
        return self._drag

    def _layer(self, layer_id: Optional[str]) -> Optional[LayerBase]:
        template = self.template
        if template is None or layer_id is None:
            return None
        return template.layer(layer_id)

    def _is_drawn(self, layer_id: Optional[str]) -> bool:
        layer = self._layer(layer_id)
        return layer is not None and is_layer_drawn(layer, self.preview_card)

    def _notify(self) -> None:
        self.changed.emit()

    # ------------------------------------------------------------------
    # Document / view options
    # ------------------------------------------------------------------
    def set_active_template(self, template_id: Optional[str]) -> None:
        if template_id == self.active_template_id:
            return
        self.active_template_id = template_id
        self.selected_layer_id = None
        self.hovered_layer_id = None
        self._drag = None
        self.history.clear()
        self._notify()

    def set_preview_card(self, card_id: Optional[str]) -> None:
        self.preview_card_id = card_id
        self._notify()

    def set_snap_enabled(self, enabled: bool) -> None:
        self.snap_enabled = bool(enabled)
        self._notify()

    def set_snap_grid_size(self, size: int) -> None:
        if size not in SNAP_SIZES:
            raise ValueError(f"Grid size must be one of {SNAP_SIZES}")
        self.snap_grid_size = size
        self._notify()

    def render_context(self) -> Optional[RenderContext]:
        template = self.template
        if template is None:
            return None
        return RenderContext(
            template=template,
            palette=self.store.palette,
            card=self.preview_card,
            assets=self.store.assets,
        )

    def scene_nodes(self):
        ctx = self.render_context()
        return build_scene(ctx) if ctx else []

    # ------------------------------------------------------------------
    # Undoable edits
    # ------------------------------------------------------------------
    def _record(self) -> Optional[Template]:
        template = self.template
        if template is not None:
            self.history.push_snapshot(template.layers)
        return template

    def add_layer(self, layer_or_kind) -> Optional[LayerBase]:
        layer = default_layer(layer_or_kind) if isinstance(layer_or_kind, str) else layer_or_kind
        template = self.template
        if template is None:
            return None
        if template.layer(layer.id) is not None:
            raise ValueError(f"Layer id already used in template: {layer.id}")
        self._record()
        self.store.add_layer(template.id, layer)
        self.selected_layer_id = layer.id
        self._notify()
        return layer

    def delete_layer(self, layer_id: str) -> None:
        if self._layer(layer_id) is None:
            return
        template = self._record()
        self.store.delete_layer(template.id, layer_id)
        if self.selected_layer_id == layer_id:
            self.selected_layer_id = None
        if self.hovered_layer_id == layer_id:
            self.hovered_layer_id = None
        self._notify()

    def reorder_layers(self, ordered_ids: List[str]) -> None:
        template = self._record()
        if template is None:
            return
        self.store.reorder_layers(template.id, ordered_ids)
        self._notify()

    def move_layer(self, layer_id: str, steps: int) -> None:
        """Move a layer ``steps`` positions up (positive) or down the z-order."""
        template = self.template
        if template is None or self._layer(layer_id) is None:
            return
        ids = [layer.id for layer in template.layers]
        index = ids.index(layer_id)
        target = max(0, min(len(ids) - 1, index + steps))
        if target == index:
            return
        ids.insert(target, ids.pop(index))
        self.reorder_layers(ids)

    def update_layer(self, layer_id: str, record: bool = True, **partial) -> None:
        """Commit a property edit; ``record=False`` continues an edit begun with
        :meth:`begin_property_edit`."""
        template = self.template
        layer = self._layer(layer_id)
        if template is None or layer is None:
            return
        layer.clone().update(**partial)
        if record:
            self._record()
        self.store.update_layer(template.id, layer_id, **partial)
        self._notify()

    def begin_property_edit(self) -> None:
        """Snapshot taken when a property field gains focus."""
        self._record()

    def undo(self) -> bool:
        done = self.history.undo(self.active_template_id)
        if done:
            self._after_restore()
        return done

    def redo(self) -> bool:
        done = self.history.redo(self.active_template_id)
        if done:
            self._after_restore()
        return done

    def _after_restore(self) -> None:
        self._drag = None
        if self._layer(self.selected_layer_id) is None:
            self.selected_layer_id = None
        if self._layer(self.hovered_layer_id) is None:
            self.hovered_layer_id = None
        self._notify()

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------
    def hover_enter(self, layer_id: str) -> None:
        if not self._is_drawn(layer_id):
            return
        self.hovered_layer_id = layer_id
        self._notify()

    def hover_leave(self, layer_id: Optional[str] = None) -> None:
        if layer_id is None or self.hovered_layer_id == layer_id:
            self.hovered_layer_id = None
            self._notify()

    def click_layer(self, layer_id: str) -> None:
        if not self._is_drawn(layer_id):
            return
        self.selected_layer_id = layer_id
        self._notify()

    def select_layer(self, layer_id: Optional[str]) -> None:
        """Select from the layer list; hidden layers can be selected there."""
        if layer_id is not None and self._layer(layer_id) is None:
            return
        self.selected_layer_id = layer_id
        self._notify()

    def click_background(self) -> None:
        self.selected_layer_id = None
        self._notify()

    def begin_drag(self, layer_id: str) -> bool:
        layer = self._layer(layer_id)
        if layer is None or layer.locked or not self._is_drawn(layer_id):
            return False
        self._drag = DragState(
            layer_id=layer_id,
            start_x=layer.x,
            start_y=layer.y,
            before=take_snapshot(self.template.layers),
            live_x=layer.x,
            live_y=layer.y,
        )
        self.selected_layer_id = layer_id
        self._notify()
        return True

    def drag_bound(self, x: float, y: float, shift: bool = False) -> Tuple[float, float]:
        """Constrain a live pointer position; called before every repaint."""
        drag = self._drag
        if drag is None:
            return x, y
        x, y = constrain_drag(
            (drag.start_x, drag.start_y),
            (x, y),
            shift=shift,
            snap_enabled=self.snap_enabled,
            grid=self.snap_grid_size,
        )
        drag.live_x, drag.live_y = x, y
        self._notify()
        return x, y

    def end_drag(self, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """Commit the drag. Returns False when nothing moved (plain click)."""
        drag = self._drag
        self._drag = None
        if drag is None:
            return False
        if x is not None and y is not None:
            drag.live_x, drag.live_y = x, y
        if not drag.moved or self.template is None:
            self._notify()
            return False
        self.history.push_snapshot(drag.before)
        self.store.update_layer(self.active_template_id, drag.layer_id, x=drag.live_x, y=drag.live_y)
        logger.debug("Moved layer %s to (%s, %s)", drag.layer_id, drag.live_x, drag.live_y)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------
    def _overlay(self, layer_id: str, style: str) -> Overlay:
        layer = self._layer(layer_id)
        phase_count = 0
        if isinstance(layer, PhaseIconsLayer):
            phase_count = len(self.store.palette.phases_for(self.preview_card))
        x, y, width, height = layer_bounds(layer, phase_count)
        drag = self._drag
        if drag is not None and drag.layer_id == layer_id:
            x += drag.live_x - layer.x
            y += drag.live_y - layer.y
        return Overlay(layer_id, style, x, y, width, height)

    def overlays(self) -> List[Overlay]:
        result: List[Overlay] = []
        hovered = self.hovered_layer_id
        if hovered and hovered != self.selected_layer_id and self._is_drawn(hovered):
            result.append(self._overlay(hovered, "hover"))
        if self.selected_layer_id and self._is_drawn(self.selected_layer_id):
            result.append(self._overlay(self.selected_layer_id, "selection"))
        return result
