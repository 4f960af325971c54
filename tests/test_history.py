import pytest

from cardforge.core.history import MAX_UNDO, UndoHistory, take_snapshot
from cardforge.core.models import RectLayer, TextLayer


class _Documents:
    """In-memory layer lists keyed by document id."""

    def __init__(self, **docs):
        self.docs = docs

    def get(self, doc_id):
        return self.docs.get(doc_id)

    def set(self, doc_id, layers):
        self.docs[doc_id] = layers


@pytest.fixture
def docs():
    return _Documents(doc=[RectLayer(id="bg", fill="#000000")])


@pytest.fixture
def history(docs):
    return UndoHistory(docs.get, docs.set)


def _state(layers):
    return [layer.to_dict() for layer in layers]


class TestSnapshots:
    def test_snapshot_is_deep_copy(self):
        layers = [RectLayer(id="bg", fill="#000000")]
        snapshot = take_snapshot(layers)
        layers[0].fill = "#ffffff"
        assert snapshot[0].fill == "#000000"

    def test_push_clears_redo(self, history, docs):
        history.push_snapshot(docs.get("doc"))
        docs.get("doc")[0].fill = "#111111"
        history.undo("doc")
        assert history.can_redo
        history.push_snapshot(docs.get("doc"))
        assert not history.can_redo


class TestUndoRedo:
    def test_inverse_law(self, history, docs):
        states = [_state(docs.get("doc"))]
        operations = [
            lambda layers: layers[0].update(fill="#ff0000"),
            lambda layers: layers.append(TextLayer(id="title")),
            lambda layers: layers[1].update(x=40, y=12),
            lambda layers: layers.reverse(),
            lambda layers: layers.pop(0),
        ]
        for operation in operations:
            history.push_snapshot(docs.get("doc"))
            operation(docs.get("doc"))
            states.append(_state(docs.get("doc")))

        for _ in operations:
            assert history.undo("doc")
        assert _state(docs.get("doc")) == states[0]
        assert not history.undo("doc")

        for _ in operations:
            assert history.redo("doc")
        assert _state(docs.get("doc")) == states[-1]
        assert not history.redo("doc")

    def test_undo_restores_independent_copy(self, history, docs):
        history.push_snapshot(docs.get("doc"))
        docs.get("doc")[0].fill = "#ff0000"
        history.undo("doc")
        docs.get("doc")[0].fill = "#00ff00"
        history.redo("doc")
        history.undo("doc")
        assert docs.get("doc")[0].fill == "#00ff00"

    def test_empty_stack_is_noop(self, history, docs):
        before = _state(docs.get("doc"))
        assert not history.undo("doc")
        assert not history.redo("doc")
        assert _state(docs.get("doc")) == before

    def test_missing_document_is_noop(self, history, docs):
        history.push_snapshot(docs.get("doc"))
        assert not history.undo("nope")
        assert not history.undo(None)
        assert history.undo_depth == 1

    def test_clear(self, history, docs):
        history.push_snapshot(docs.get("doc"))
        history.clear()
        assert not history.can_undo and not history.can_redo


class TestHistoryCap:
    def test_oldest_snapshot_is_evicted(self, history):
        for i in range(MAX_UNDO + 1):
            history.push_snapshot([RectLayer(id=f"l{i}")])
        snapshots = history.undo_snapshots()
        assert history.undo_depth == 50
        assert snapshots[0][0].id == "l1"
        assert snapshots[-1][0].id == "l50"

    def test_custom_limit(self, docs):
        history = UndoHistory(docs.get, docs.set, limit=2)
        for i in range(5):
            history.push_snapshot([RectLayer(id=f"l{i}")])
        assert [s[0].id for s in history.undo_snapshots()] == ["l3", "l4"]
