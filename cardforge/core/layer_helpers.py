"""Pure resolution functions shared by the interactive canvas and the rasterizer."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .models import CardData, ClassConfig, LayerBase, Palette, PhaseIconsLayer, RectLayer

FALLBACK_FILL = "#555555"
NEUTRAL_RARITY_FILL = "#888888"


def should_show_layer(layer: LayerBase, card: Optional[CardData]) -> bool:
    """Return False when the layer's ``show_if_field`` is empty on ``card``.

    Without a card (authoring with nothing selected) every layer is shown.
    """
    if not layer.show_if_field:
        return True
    if card is None:
        return True
    value = card.get(layer.show_if_field)
    if value is None or value == "":
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return False
    return True


def _stringify(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _or_dash(value) -> str:
    return "-" if value is None else _stringify(value)


def resolve_field_text(field: str, card: Optional[CardData]) -> str:
    """Text shown for a binding; ``[field]`` while the binding is unresolved."""
    if not field:
        return ""
    if card is None:
        return f"[{field}]"
    if field == "stats":
        return f"{_or_dash(card.power)}/{_or_dash(card.hp)}"
    if field == "statsVP":
        return f"{_or_dash(card.vp)} VP"
    value = card.get(field)
    text = _stringify(value) if value is not None else f"[{field}]"
    return text.replace("\\n", "\n")


def resolve_rect_fill(
    layer: RectLayer,
    class_colors: Dict[str, ClassConfig],
    card: Optional[CardData],
) -> str:
    if not layer.fill_source:
        return layer.fill or FALLBACK_FILL
    # An unresolved class colour never falls back to the manual fill.
    if card is None:
        return FALLBACK_FILL
    config = class_colors.get(card.card_class)
    if config is None:
        return FALLBACK_FILL
    if layer.fill_source == "class.primary":
        return config.primary
    if layer.fill_source == "class.secondary":
        return config.secondary
    return layer.fill or FALLBACK_FILL


def resolve_rarity_fill(palette: Palette, card: Optional[CardData]) -> str:
    if card is None:
        return NEUTRAL_RARITY_FILL
    entry = palette.rarity_entry(card.rarity)
    return entry.color if entry else NEUTRAL_RARITY_FILL


# ─────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────

def phase_icon_offsets(layer: PhaseIconsLayer, count: int):
    """Yield the (x, y) of each icon relative to the layer origin."""
    step = layer.icon_size + layer.gap
    length = count * layer.icon_size + max(0, count - 1) * layer.gap
    start = 0.0
    if layer.orientation == "horizontal" and layer.align == "right":
        start = layer.width - length
    for i in range(count):
        offset = start + i * step
        if layer.orientation == "vertical":
            yield 0.0, offset
        else:
            yield offset, 0.0


def layer_bounds(layer: LayerBase, phase_count: int = 0) -> Tuple[float, float, float, float]:
    """Visual bounding box used for hover and selection overlays."""
    if isinstance(layer, PhaseIconsLayer) and phase_count > 0:
        length = phase_count * layer.icon_size + (phase_count - 1) * layer.gap
        if layer.orientation == "vertical":
            return layer.x, layer.y, layer.icon_size, length
        x = layer.x
        if layer.align == "right":
            x = layer.x + layer.width - length
        return x, layer.y, length, layer.icon_size
    return layer.x, layer.y, layer.width, layer.height
