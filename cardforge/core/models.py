"""Dataclasses that describe cards, templates, layers and the project palette."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type

from .errors import TemplateFormatError


class CardType(str, Enum):
    """Closed set of card types a template can apply to."""

    SLAYER = "Slayer"
    ERRANT = "Errant"
    ACTION = "Action"
    PLOY = "Ploy"
    INTERVENTION = "Intervention"
    CHAMBER = "Chamber"
    RELIC = "Relic"
    DUNGEON = "Dungeon"
    PHASE = "Phase"


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    MYTHIC = "mythic"


# Keys of CardData as they appear in project files and in layer bindings.
CARD_FIELDS = ("id", "name", "class", "type", "rarity", "cost", "power", "hp", "vp", "effect")
SYNTHETIC_FIELDS = ("stats", "statsVP")


@dataclass
class CardData:
    id: str
    name: str
    card_class: str = ""
    type: str = CardType.ACTION.value
    rarity: str = Rarity.COMMON.value
    cost: Optional[float] = None
    power: Optional[float] = None
    hp: Optional[float] = None
    vp: Optional[float] = None
    effect: str = ""

    def get(self, key: str, default=None):
        """Look up a field by its project-file name ("class" maps to card_class)."""
        if key == "class":
            return self.card_class
        if key not in CARD_FIELDS:
            return default
        return getattr(self, key, default)

    def update(self, **partial) -> None:
        if "id" in partial and partial["id"] != self.id:
            raise ValueError("Card id is immutable")
        for key, value in partial.items():
            if key == "class":
                key = "card_class"
            if not hasattr(self, key):
                raise AttributeError(f"Unknown card field: {key}")
            setattr(self, key, value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CardData":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            card_class=data.get("class", ""),
            type=data.get("type", CardType.ACTION.value),
            rarity=data.get("rarity", Rarity.COMMON.value),
            cost=data.get("cost"),
            power=data.get("power"),
            hp=data.get("hp"),
            vp=data.get("vp"),
            effect=data.get("effect", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {key: self.get(key) for key in CARD_FIELDS}
        return {k: v for k, v in data.items() if v is not None}


# ─────────────────────────────────────────────
# Layers
# ─────────────────────────────────────────────

# Python attribute name -> JSON key, for the attributes whose names differ.
_JSON_KEYS = {
    "show_if_field": "showIfField",
    "fill_source": "fillSource",
    "corner_radius": "cornerRadius",
    "stroke_width": "strokeWidth",
    "font_size": "fontSize",
    "font_family": "fontFamily",
    "font_style": "fontStyle",
    "line_height": "lineHeight",
    "image_source": "imageSource",
    "image_fit": "imageFit",
    "text_fill": "textFill",
    "icon_size": "iconSize",
}
_ATTR_NAMES = {v: k for k, v in _JSON_KEYS.items()}

_POSITIVE_SIZES = ("width", "height")
_NON_NEGATIVE = ("font_size", "icon_size", "gap")


def check_layer_value(layer_id: str, attr: str, value: Any) -> None:
    """Raise ValueError for a value that would leave the layer undrawable."""
    if attr in _POSITIVE_SIZES and value < 1:
        raise ValueError(f"Layer {layer_id} must be at least 1x1")
    if attr in _NON_NEGATIVE and value is not None and value < 0:
        raise ValueError(f"Layer {layer_id} has negative {attr}")
    if attr == "show_if_field" and value and value not in CARD_FIELDS:
        raise ValueError(f"Layer {layer_id} shows on unknown field {value!r}")


@dataclass
class LayerBase:
    """Fields shared by every layer kind. Subclasses set ``kind``."""

    kind: ClassVar[str] = ""

    id: str
    x: float = 0
    y: float = 0
    width: float = 100
    height: float = 100
    label: Optional[str] = None
    visible: Optional[bool] = None
    locked: Optional[bool] = None
    show_if_field: Optional[str] = None

    @property
    def is_hidden(self) -> bool:
        return self.visible is False

    @property
    def display_name(self) -> str:
        return self.label or self.kind

    def clone(self) -> "LayerBase":
        return copy.deepcopy(self)

    def update(self, **partial) -> None:
        """Merge ``partial`` into the layer. Nothing is changed if any value is rejected."""
        changes = {}
        for key, value in partial.items():
            key = _ATTR_NAMES.get(key, key)
            if key in ("id", "kind", "type"):
                raise ValueError(f"Layer field '{key}' cannot be changed")
            if not hasattr(self, key):
                raise AttributeError(f"{self.kind} layer has no field '{key}'")
            check_layer_value(self.id, key, value)
            changes[key] = value
        for key, value in changes.items():
            setattr(self, key, value)

    def validate(self) -> None:
        for f in fields(self):
            check_layer_value(self.id, f.name, getattr(self, f.name))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.kind}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[_JSON_KEYS.get(f.name, f.name)] = copy.deepcopy(value)
        return data


@dataclass
class RectLayer(LayerBase):
    kind: ClassVar[str] = "rect"

    fill: Optional[str] = None
    fill_source: Optional[str] = None
    corner_radius: Optional[float] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    opacity: Optional[float] = None


@dataclass
class TextLayer(LayerBase):
    kind: ClassVar[str] = "text"

    field: str = "name"
    font_size: float = 18
    font_family: Optional[str] = None
    font_style: Optional[str] = None
    fill: Optional[str] = None
    align: Optional[str] = None
    line_height: Optional[float] = None
    wrap: Optional[str] = None


@dataclass
class ImageLayer(LayerBase):
    kind: ClassVar[str] = "image"

    image_source: str = "art"
    image_fit: str = "cover"
    opacity: Optional[float] = None


@dataclass
class BadgeLayer(LayerBase):
    kind: ClassVar[str] = "badge"

    shape: str = "circle"
    field: str = "cost"
    fill: Optional[str] = None
    text_fill: Optional[str] = None
    font_size: Optional[float] = None


@dataclass
class PhaseIconsLayer(LayerBase):
    kind: ClassVar[str] = "phase-icons"

    orientation: str = "horizontal"
    icon_size: float = 24
    gap: float = 4
    align: str = "left"
    fill: Optional[str] = None
    text_fill: Optional[str] = None
    corner_radius: Optional[float] = None
    font_size: Optional[float] = None


@dataclass
class RarityDiamondLayer(LayerBase):
    kind: ClassVar[str] = "rarity-diamond"

    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    opacity: Optional[float] = None


LAYER_CLASSES: Dict[str, Type[LayerBase]] = {
    cls.kind: cls
    for cls in (RectLayer, TextLayer, ImageLayer, BadgeLayer, PhaseIconsLayer, RarityDiamondLayer)
}


def layer_from_dict(data: Dict[str, Any]) -> LayerBase:
    """Build the layer variant named by ``data["type"]``."""
    if not isinstance(data, dict):
        raise TemplateFormatError("Layer entry must be a JSON object")
    kind = data.get("type")
    cls = LAYER_CLASSES.get(kind)
    if cls is None:
        raise TemplateFormatError(f"Unknown layer type: {kind!r}")
    if "id" not in data:
        raise TemplateFormatError(f"{kind} layer without an id")

    known = {f.name for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key == "type":
            continue
        attr = _ATTR_NAMES.get(key, key)
        if attr in known:
            kwargs[attr] = copy.deepcopy(value)
    return cls(**kwargs)


def clone_layers(layers: List[LayerBase]) -> List[LayerBase]:
    return [layer.clone() for layer in layers]


# ─────────────────────────────────────────────
# Template
# ─────────────────────────────────────────────

@dataclass
class Template:
    id: str
    name: str
    card_types: List[str] = field(default_factory=list)
    width: int = 375
    height: int = 523
    layers: List[LayerBase] = field(default_factory=list)

    def layer(self, layer_id: str) -> Optional[LayerBase]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def applies_to(self, card_type: str) -> bool:
        return card_type in self.card_types

    def clone(self) -> "Template":
        return copy.deepcopy(self)

    def validate(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError("Canvas width and height must be positive")
        seen = set()
        for layer in self.layers:
            if layer.id in seen:
                raise ValueError(f"Duplicate layer id: {layer.id}")
            seen.add(layer.id)
            layer.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cardTypes": list(self.card_types),
            "canvas": {"width": self.width, "height": self.height},
            "layers": [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        if not isinstance(data, dict):
            raise TemplateFormatError("Template must be a JSON object")
        canvas = data.get("canvas")
        if not isinstance(canvas, dict) or "width" not in canvas or "height" not in canvas:
            raise TemplateFormatError("Template is missing canvas width/height")
        layers = data.get("layers")
        if not isinstance(layers, list):
            raise TemplateFormatError("Template 'layers' must be a list")
        try:
            width, height = int(canvas["width"]), int(canvas["height"])
            template = cls(
                id=str(data.get("id", "")),
                name=data.get("name", "Imported Template"),
                card_types=list(data.get("cardTypes", [])),
                width=width,
                height=height,
                layers=[layer_from_dict(item) for item in layers],
            )
            template.validate()
        except (TypeError, ValueError) as exc:
            raise TemplateFormatError(f"Invalid template data: {exc}") from exc
        return template


# ─────────────────────────────────────────────
# Palette / project configuration
# ─────────────────────────────────────────────

@dataclass
class ClassConfig:
    primary: str
    secondary: str
    cockatrice_color: str = ""


@dataclass
class RarityConfig:
    color: str
    aliases: List[str] = field(default_factory=list)


@dataclass
class Palette:
    """Read-only project configuration consumed by the resolvers."""

    class_colors: Dict[str, ClassConfig] = field(default_factory=dict)
    rarity_config: Dict[str, RarityConfig] = field(default_factory=dict)
    phase_map: Dict[str, List[str]] = field(default_factory=dict)
    phase_abbreviations: Dict[str, str] = field(default_factory=dict)

    def phases_for(self, card: Optional[CardData]) -> List[str]:
        if card is None:
            return []
        return list(self.phase_map.get(card.type, []))

    def abbreviation(self, phase: str) -> str:
        return self.phase_abbreviations.get(phase) or phase[:1]

    def rarity_entry(self, rarity: str) -> Optional[RarityConfig]:
        if not rarity:
            return None
        key = rarity.lower()
        entry = self.rarity_config.get(key)
        if entry is not None:
            return entry
        for cfg in self.rarity_config.values():
            if key in (alias.lower() for alias in cfg.aliases):
                return cfg
        return None


def default_palette() -> Palette:
    return Palette(
        class_colors={
            "Cleric": ClassConfig("#d4ac0d", "#9a7d0a", "W"),
            "Hunter": ClassConfig("#27ae60", "#1e8449", "G"),
            "Mage": ClassConfig("#2980b9", "#1a5276", "U"),
            "Rogue": ClassConfig("#5d6d7e", "#2c3e50", "B"),
            "Warlock": ClassConfig("#7d3c98", "#4a235a", "B"),
            "Warrior": ClassConfig("#c0392b", "#7b241c", "R"),
        },
        rarity_config={
            "common": RarityConfig("#4ade80", ["comune"]),
            "rare": RarityConfig("#f87171", ["rara"]),
            "epic": RarityConfig("#60a5fa", ["epica"]),
        },
        phase_map={
            "Slayer": ["Encounter"],
            "Errant": ["Encounter"],
            "Action": ["Combat", "Camp"],
            "Ploy": ["Preparation", "Camp"],
            "Intervention": ["Camp"],
            "Chamber": ["Encounter"],
            "Relic": ["Preparation", "Combat"],
            "Dungeon": [],
            "Phase": [],
        },
        phase_abbreviations={
            "Encounter": "E",
            "Preparation": "P",
            "Combat": "B",
            "Camp": "C",
        },
    )
