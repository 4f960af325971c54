import pytest

from cardforge.core.editor import EditorSession, constrain_drag, snap_to_grid
from cardforge.core.models import PhaseIconsLayer, RectLayer, TextLayer
from cardforge.core.project import new_blank_template
from cardforge.core.settings import EditorSettings


@pytest.fixture
def session(store):
    session = EditorSession(store)
    session.set_active_template("t1")
    return session


def _positions(store, template_id="t1"):
    return {layer.id: (layer.x, layer.y) for layer in store.template(template_id).layers}


class TestConstrainDrag:
    def test_snap_rounds_each_axis(self):
        assert constrain_drag((0, 0), (13, 27), snap_enabled=True, grid=10) == (10, 30)
        assert snap_to_grid(5, 10) == 10
        assert snap_to_grid(-4, 5) == -5

    def test_axis_lock_pins_smaller_displacement(self):
        assert constrain_drag((10, 10), (50, 14), shift=True) == (50, 10)
        assert constrain_drag((10, 10), (12, 60), shift=True) == (10, 60)

    def test_equal_displacement_pins_y(self):
        assert constrain_drag((0, 0), (20, 20), shift=True) == (20, 0)

    def test_lock_and_snap_compose(self):
        x, y = constrain_drag((12, 7), (47, 9), shift=True, snap_enabled=True, grid=10)
        assert y == 7
        assert x == 50

    def test_no_constraints(self):
        assert constrain_drag((0, 0), (3.5, 4.25)) == (3.5, 4.25)


class TestSessionSettings:
    def test_settings_seed_snap_options(self, store):
        session = EditorSession(store, EditorSettings(snap_enabled=True, snap_grid_size=20))
        assert session.snap_enabled
        assert session.snap_grid_size == 20

    def test_grid_size_must_be_supported(self, session):
        session.set_snap_grid_size(10)
        assert session.snap_grid_size == 10
        with pytest.raises(ValueError):
            session.set_snap_grid_size(7)

    def test_changed_is_emitted(self, session):
        calls = []
        session.changed.connect(lambda: calls.append(1))
        session.set_snap_enabled(True)
        assert calls


class TestDragging:
    def test_drag_commits_and_undoes(self, session, store):
        session.set_snap_enabled(True)
        session.set_snap_grid_size(10)
        store.update_layer("t1", "title", x=12, y=7)

        assert session.begin_drag("title")
        assert session.drag_bound(47, 9, shift=True) == (50, 7)
        assert session.end_drag()
        assert _positions(store)["title"] == (50, 7)
        assert session.history.undo_depth == 1

        assert session.undo()
        assert _positions(store)["title"] == (12, 7)
        assert session.redo()
        assert _positions(store)["title"] == (50, 7)

    def test_drag_without_movement_records_nothing(self, session):
        session.begin_drag("title")
        assert not session.end_drag(10, 10)
        assert session.history.undo_depth == 0
        assert session.selected_layer_id == "title"

    def test_locked_layer_cannot_be_dragged(self, session, store):
        store.update_layer("t1", "title", locked=True)
        assert not session.begin_drag("title")
        assert session.dragging is None

    def test_drag_bound_without_drag_is_identity(self, session):
        assert session.drag_bound(3, 4, shift=True) == (3, 4)

    def test_overlay_follows_live_position(self, session):
        session.begin_drag("title")
        session.drag_bound(30, 40)
        (overlay,) = session.overlays()
        assert overlay.style == "selection"
        assert (overlay.x, overlay.y) == (30, 40)


class TestSelectionAndHover:
    def test_click_selects_and_background_clears(self, session):
        session.click_layer("bg")
        assert session.selected_layer_id == "bg"
        session.click_background()
        assert session.selected_layer_id is None

    def test_hover_suppressed_on_selection(self, session):
        session.click_layer("title")
        session.hover_enter("title")
        assert [o.style for o in session.overlays()] == ["selection"]
        session.hover_enter("bg")
        assert [(o.layer_id, o.style) for o in session.overlays()] == [("bg", "hover"), ("title", "selection")]
        session.hover_leave("bg")
        assert [o.style for o in session.overlays()] == ["selection"]

    def test_hidden_layers_are_not_targets(self, session, store):
        store.update_layer("t1", "bg", visible=False)
        session.hover_enter("bg")
        session.click_layer("bg")
        assert session.hovered_layer_id is None
        assert session.selected_layer_id is None
        assert session.overlays() == []

    def test_layer_list_can_select_hidden_layers(self, session, store):
        store.update_layer("t1", "bg", visible=False)
        session.select_layer("bg")
        assert session.selected_layer_id == "bg"
        assert session.overlays() == []
        session.select_layer("ghost")
        assert session.selected_layer_id == "bg"
        session.select_layer(None)
        assert session.selected_layer_id is None

    def test_predicate_failing_layers_are_not_targets(self, session, store):
        store.update_layer("t1", "title", show_if_field="vp")
        session.set_preview_card("c1")
        session.click_layer("title")
        assert session.selected_layer_id is None

    def test_phase_icon_overlay_uses_phase_count(self, session, store):
        store.add_layer("t1", PhaseIconsLayer(id="phases", x=5, y=5, width=200, height=30, icon_size=24, gap=4))
        session.set_preview_card("c2")
        session.click_layer("phases")
        (overlay,) = session.overlays()
        assert (overlay.width, overlay.height) == (52, 24)


class TestUndoableEdits:
    def test_each_edit_pushes_pre_state(self, session, store):
        session.add_layer(RectLayer(id="extra"))
        session.update_layer("extra", fill="#ff0000")
        session.move_layer("extra", -2)
        session.delete_layer("bg")
        assert [l.id for l in store.template("t1").layers] == ["extra", "title"]
        assert session.history.undo_depth == 4

        session.undo()
        assert [l.id for l in store.template("t1").layers] == ["extra", "bg", "title"]
        session.undo()
        assert [l.id for l in store.template("t1").layers] == ["bg", "title", "extra"]
        session.undo()
        assert store.template("t1").layer("extra").fill is None
        session.undo()
        assert [l.id for l in store.template("t1").layers] == ["bg", "title"]
        assert not session.undo()

    def test_add_layer_by_kind_selects_it(self, session, store):
        layer = session.add_layer("badge")
        assert store.template("t1").layer(layer.id) is layer
        assert session.selected_layer_id == layer.id

    def test_add_duplicate_layer_id_rejected(self, session):
        with pytest.raises(ValueError):
            session.add_layer(TextLayer(id="title"))
        assert session.history.undo_depth == 0

    def test_rejected_edit_leaves_history_alone(self, session, store):
        with pytest.raises(ValueError):
            session.update_layer("title", width=0)
        assert session.history.undo_depth == 0
        assert store.template("t1").layer("title").width == 355

    def test_property_edit_run_is_one_step(self, session, store):
        session.begin_property_edit()
        session.update_layer("title", record=False, fontSize=20)
        session.update_layer("title", record=False, fontSize=24)
        assert session.history.undo_depth == 1
        session.undo()
        assert store.template("t1").layer("title").font_size == 18

    def test_delete_selected_clears_selection(self, session):
        session.click_layer("title")
        session.delete_layer("title")
        assert session.selected_layer_id is None
        session.undo()
        assert session.template.layer("title") is not None

    def test_undo_drops_selection_of_removed_layer(self, session):
        session.add_layer(RectLayer(id="extra"))
        assert session.selected_layer_id == "extra"
        session.undo()
        assert session.selected_layer_id is None


class TestActiveDocument:
    def test_switching_clears_history_and_selection(self, session, store):
        other = store.add_template(new_blank_template("Other"))
        session.update_layer("title", fill="#000000")
        session.click_layer("title")
        session.set_active_template(other.id)
        assert session.history.undo_depth == 0
        assert session.selected_layer_id is None
        assert not session.undo()

    def test_same_template_keeps_history(self, session):
        session.update_layer("title", fill="#000000")
        session.set_active_template("t1")
        assert session.history.undo_depth == 1

    def test_no_active_template(self, store):
        session = EditorSession(store)
        assert session.scene_nodes() == []
        assert session.add_layer("rect") is None
        assert session.overlays() == []
