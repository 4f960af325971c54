"""Project state: templates, cards and palette, with in-place mutation operations."""

from __future__ import annotations

import uuid
from typing import Iterable, List, Optional

from .events import EventChannel
from .models import (
    BadgeLayer,
    CardData,
    ImageLayer,
    LayerBase,
    Palette,
    PhaseIconsLayer,
    RarityDiamondLayer,
    RectLayer,
    Template,
    TextLayer,
    clone_layers,
    default_palette,
)
from .scene import AssetMaps

DEFAULT_CANVAS = (375, 523)

LAYER_KINDS = ("rect", "text", "image", "badge", "phase-icons", "rarity-diamond")


def new_id() -> str:
    return str(uuid.uuid4())


def default_layer(kind: str) -> LayerBase:
    """Fresh layer of ``kind`` as created by the "Add Layer" menu."""
    base = dict(id=new_id(), x=0, y=0, visible=True, locked=False)
    if kind == "rect":
        return RectLayer(**base, width=375, height=50, fill="#333333")
    if kind == "text":
        base.update(x=10, y=10)
        return TextLayer(**base, width=355, height=30, field="name", font_size=18, fill="#ffffff", align="left")
    if kind == "image":
        return ImageLayer(**base, width=375, height=523, image_source="frame", image_fit="cover", opacity=1)
    if kind == "badge":
        base.update(x=10, y=10)
        return BadgeLayer(
            **base, width=50, height=50, shape="circle", field="cost", fill="#000000", text_fill="#ffffff", font_size=18
        )
    if kind == "phase-icons":
        base.update(x=10, y=10)
        return PhaseIconsLayer(
            **base,
            width=200,
            height=30,
            orientation="horizontal",
            icon_size=24,
            gap=4,
            align="left",
            fill="#333333",
            text_fill="#ffffff",
        )
    if kind == "rarity-diamond":
        base.update(x=10, y=10)
        return RarityDiamondLayer(**base, width=24, height=24)
    raise ValueError(f"Unknown layer kind: {kind}")


def new_blank_template(name: str = "New Template", width: int = DEFAULT_CANVAS[0], height: int = DEFAULT_CANVAS[1]):
    return Template(id=new_id(), name=name, card_types=[], width=width, height=height, layers=[])


class ProjectStore:
    """Owns templates, cards, palette and loaded assets.

    Operations addressed to an unknown template or layer are no-ops. Every
    successful mutation emits ``changed``.
    """

    def __init__(
        self,
        templates: Optional[Iterable[Template]] = None,
        cards: Optional[Iterable[CardData]] = None,
        palette: Optional[Palette] = None,
        assets: Optional[AssetMaps] = None,
    ):
        self.templates: List[Template] = list(templates or [])
        for template in self.templates:
            template.validate()
        self.cards: List[CardData] = list(cards or [])
        self.palette = palette or default_palette()
        self.assets = assets or AssetMaps()
        self.changed = EventChannel("project.changed")

    # ------------------------------------------------------------------
    def _touch(self) -> None:
        self.changed.emit()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def template(self, template_id: Optional[str]) -> Optional[Template]:
        for template in self.templates:
            if template.id == template_id:
                return template
        return None

    def add_template(self, template: Template) -> Template:
        template.validate()
        if self.template(template.id) is not None:
            raise ValueError(f"Template id already used: {template.id}")
        self.templates.append(template)
        self._touch()
        return template

    def update_template(self, template_id: str, **partial) -> None:
        template = self.template(template_id)
        if template is None:
            return
        if any(key in ("width", "height") and value < 1 for key, value in partial.items()):
            raise ValueError("Canvas width and height must be positive")
        for key, value in partial.items():
            if key == "id":
                raise ValueError("Template id is immutable")
            if not hasattr(template, key):
                raise AttributeError(f"Template has no field '{key}'")
            setattr(template, key, value)
        self._touch()

    def delete_template(self, template_id: str) -> None:
        before = len(self.templates)
        self.templates = [t for t in self.templates if t.id != template_id]
        if len(self.templates) != before:
            self.assets.frames.pop(template_id, None)
            self._touch()

    def templates_for_card(self, card: CardData) -> List[Template]:
        return [t for t in self.templates if t.applies_to(card.type)]

    def template_for_card(self, card: CardData) -> Optional[Template]:
        matches = self.templates_for_card(card)
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------
    def layers(self, template_id: str) -> Optional[List[LayerBase]]:
        template = self.template(template_id)
        return template.layers if template else None

    def add_layer(self, template_id: str, layer: LayerBase) -> None:
        template = self.template(template_id)
        if template is None:
            return
        if template.layer(layer.id) is not None:
            raise ValueError(f"Layer id already used in template: {layer.id}")
        layer.validate()
        template.layers.append(layer)
        self._touch()

    def update_layer(self, template_id: str, layer_id: str, **partial) -> None:
        template = self.template(template_id)
        layer = template.layer(layer_id) if template else None
        if layer is None:
            return
        layer.update(**partial)
        self._touch()

    def delete_layer(self, template_id: str, layer_id: str) -> None:
        template = self.template(template_id)
        if template is None:
            return
        template.layers = [layer for layer in template.layers if layer.id != layer_id]
        self._touch()

    def reorder_layers(self, template_id: str, ordered_ids: List[str]) -> None:
        template = self.template(template_id)
        if template is None:
            return
        by_id = {layer.id: layer for layer in template.layers}
        template.layers = [by_id[layer_id] for layer_id in dict.fromkeys(ordered_ids) if layer_id in by_id]
        self._touch()

    def set_template_layers(self, template_id: str, layers: List[LayerBase]) -> None:
        template = self.template(template_id)
        if template is None:
            return
        template.layers = clone_layers(layers)
        self._touch()

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------
    def card(self, card_id: Optional[str]) -> Optional[CardData]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def add_card(self, card: CardData) -> None:
        self.cards.append(card)
        self._touch()

    def set_cards(self, cards: Iterable[CardData]) -> None:
        self.cards = list(cards)
        self._touch()

    def update_card(self, card_id: str, **partial) -> None:
        card = self.card(card_id)
        if card is None:
            return
        card.update(**partial)
        self._touch()

    def delete_card(self, card_id: str) -> None:
        self.cards = [c for c in self.cards if c.id != card_id]
        self._touch()
