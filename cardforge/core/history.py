"""Bounded undo/redo history of layer-list snapshots."""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, List, Optional, Sequence, Tuple

from .models import LayerBase, clone_layers

MAX_UNDO = 50

Snapshot = Tuple[LayerBase, ...]


def take_snapshot(layers: Sequence[LayerBase]) -> Snapshot:
    """Deep, independent copy of a layer list."""
    return tuple(layer.clone() for layer in layers)


class UndoHistory:
    """Two bounded stacks of snapshots for one editing context.

    ``get_layers`` / ``set_layers`` read and replace a document's live layer
    list; they are supplied by the owner so that restores go through the same
    mutation path as every other edit.
    """

    def __init__(
        self,
        get_layers: Callable[[str], Optional[List[LayerBase]]],
        set_layers: Callable[[str, List[LayerBase]], None],
        limit: int = MAX_UNDO,
    ):
        self._get_layers = get_layers
        self._set_layers = set_layers
        self.limit = limit
        # deque(maxlen) evicts the oldest entry when a push overflows.
        self._undo: Deque[Snapshot] = deque(maxlen=limit)
        self._redo: Deque[Snapshot] = deque(maxlen=limit)

    # ------------------------------------------------------------------
    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def undo_snapshots(self) -> List[Snapshot]:
        """Oldest first."""
        return list(self._undo)

    # ------------------------------------------------------------------
    def push_snapshot(self, layers: Sequence[LayerBase]) -> None:
        """Record the state before a mutation. Invalidates redo history."""
        self._undo.append(take_snapshot(layers))
        self._redo.clear()

    # ------------------------------------------------------------------
    def undo(self, document_id: Optional[str]) -> bool:
        return self._step(document_id, self._undo, self._redo)

    # ------------------------------------------------------------------
    def redo(self, document_id: Optional[str]) -> bool:
        return self._step(document_id, self._redo, self._undo)

    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    # ------------------------------------------------------------------
    def _step(self, document_id: Optional[str], source: Deque[Snapshot], target: Deque[Snapshot]) -> bool:
        if not source or document_id is None:
            return False
        current = self._get_layers(document_id)
        if current is None:
            return False
        snapshot = source.pop()
        target.append(take_snapshot(current))
        self._set_layers(document_id, clone_layers(list(snapshot)))
        return True
