import pytest

from cardforge.core.events import EventChannel
from cardforge.core.models import (
    BadgeLayer,
    CardData,
    ImageLayer,
    PhaseIconsLayer,
    RarityDiamondLayer,
    RectLayer,
    Template,
    TextLayer,
)
from cardforge.core.project import LAYER_KINDS, ProjectStore, default_layer, new_blank_template


class TestDefaultLayer:
    @pytest.mark.parametrize(
        "kind, cls",
        [
            ("rect", RectLayer),
            ("text", TextLayer),
            ("image", ImageLayer),
            ("badge", BadgeLayer),
            ("phase-icons", PhaseIconsLayer),
            ("rarity-diamond", RarityDiamondLayer),
        ],
    )
    def test_kinds(self, kind, cls):
        layer = default_layer(kind)
        assert isinstance(layer, cls)
        assert layer.kind == kind
        assert layer.visible is True and layer.locked is False

    def test_defaults(self):
        rect = default_layer("rect")
        assert (rect.width, rect.height, rect.fill) == (375, 50, "#333333")
        text = default_layer("text")
        assert (text.x, text.y, text.width, text.field) == (10, 10, 355, "name")
        diamond = default_layer("rarity-diamond")
        assert (diamond.x, diamond.y, diamond.width, diamond.height) == (10, 10, 24, 24)

    def test_ids_are_unique(self):
        assert len({default_layer("rect").id for _ in range(20)}) == 20

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            default_layer("sticker")

    def test_every_listed_kind_is_buildable(self):
        assert [default_layer(kind).kind for kind in LAYER_KINDS] == list(LAYER_KINDS)


class TestTemplates:
    def test_blank_template(self):
        template = new_blank_template("Blank")
        assert (template.width, template.height, template.layers) == (375, 523, [])

    def test_add_update_delete(self, store):
        template = store.add_template(new_blank_template("Second"))
        store.update_template(template.id, card_types=["Relic"])
        assert store.template(template.id).card_types == ["Relic"]
        with pytest.raises(ValueError):
            store.update_template(template.id, id="other")
        store.delete_template(template.id)
        assert store.template(template.id) is None

    def test_delete_drops_frame_asset(self, store):
        store.assets.frames["t1"] = object()
        store.delete_template("t1")
        assert "t1" not in store.assets.frames

    def test_template_for_card(self, store, cards):
        store.add_template(Template(id="t9", name="Slayers", card_types=["Slayer"]))
        assert [t.id for t in store.templates_for_card(cards[0])] == ["t1", "t9"]
        assert store.template_for_card(cards[0]).id == "t1"
        assert store.template_for_card(cards[2]) is None

    def test_invalid_templates_are_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_template(Template(id="t8", name="Flat", width=0))
        with pytest.raises(ValueError):
            store.add_template(Template(id="t1", name="Clash"))
        with pytest.raises(ValueError):
            store.update_template("t1", height=0)
        assert [t.id for t in store.templates] == ["t1"]
        assert store.template("t1").height == 523

    def test_constructor_validates_templates(self):
        template = Template(id="t", name="Twins", layers=[RectLayer(id="a"), RectLayer(id="a")])
        with pytest.raises(ValueError):
            ProjectStore(templates=[template])


class TestLayers:
    def test_partial_update(self, store):
        store.update_layer("t1", "title", fontSize=30, fill="#000000")
        layer = store.template("t1").layer("title")
        assert (layer.font_size, layer.fill, layer.field) == (30, "#000000", "name")

    def test_duplicate_id_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_layer("t1", RectLayer(id="bg"))

    def test_unknown_ids_are_noops(self, store):
        store.add_layer("missing", RectLayer(id="x"))
        store.update_layer("t1", "missing", fill="#000000")
        store.update_layer("missing", "bg", fill="#000000")
        assert store.layers("missing") is None
        assert store.template("t1").layer("bg").fill == "#222222"

    def test_reorder_drops_unknown_ids(self, store):
        store.reorder_layers("t1", ["title", "ghost", "bg"])
        assert [l.id for l in store.layers("t1")] == ["title", "bg"]

    def test_set_template_layers_copies(self, store):
        layers = [RectLayer(id="new", fill="#010101")]
        store.set_template_layers("t1", layers)
        layers[0].fill = "#ffffff"
        assert store.template("t1").layer("new").fill == "#010101"

    def test_changed_fires_per_mutation(self, store):
        calls = []
        store.changed.connect(lambda: calls.append(1))
        store.delete_layer("t1", "bg")
        assert calls == [1]

    def test_update_rejects_zero_size(self, store):
        with pytest.raises(ValueError):
            store.update_layer("t1", "bg", width=0)
        assert store.template("t1").layer("bg").width == 375

    def test_add_layer_validates(self, store):
        with pytest.raises(ValueError):
            store.add_layer("t1", RectLayer(id="thin", width=0))
        assert store.template("t1").layer("thin") is None

    def test_reorder_with_repeated_ids_keeps_every_layer(self, store):
        store.reorder_layers("t1", ["title", "bg", "title"])
        assert [l.id for l in store.layers("t1")] == ["title", "bg"]


class TestCards:
    def test_card_crud(self, store):
        store.add_card(CardData(id="c9", name="New"))
        store.update_card("c9", cost=5)
        assert store.card("c9").cost == 5
        with pytest.raises(ValueError):
            store.update_card("c9", id="c10")
        store.delete_card("c9")
        assert store.card("c9") is None

    def test_set_cards(self, store):
        store.set_cards([CardData(id="x", name="Only")])
        assert [c.name for c in store.cards] == ["Only"]


class TestEventChannel:
    def test_connect_emit_disconnect(self):
        channel = EventChannel("test")
        received = []
        listener = received.append
        channel.connect(listener)
        channel.connect(listener)
        assert len(channel) == 1
        channel.emit("a")
        channel.disconnect(listener)
        channel.emit("b")
        assert received == ["a"]
