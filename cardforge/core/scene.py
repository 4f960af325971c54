"""Backend-agnostic scene nodes and the layer -> node conversion.

Both the interactive canvas and the headless rasterizer consume the trees
built here. Every top-level node is positioned at its layer's (x, y); group
children use coordinates relative to their group.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from PIL import Image, ImageOps

from .layer_helpers import (
    phase_icon_offsets,
    resolve_field_text,
    resolve_rarity_fill,
    resolve_rect_fill,
    should_show_layer,
)
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
)

PLACEHOLDER_FILL = "#888888"


@dataclass
class RectNode:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0
    corner_radius: float = 0
    opacity: float = 1.0
    layer_id: Optional[str] = None


@dataclass
class TextNode:
    x: float
    y: float
    width: float
    height: float
    text: str
    font_size: float = 18
    font_family: str = "sans-serif"
    font_style: str = "normal"
    fill: str = "#ffffff"
    align: str = "left"
    valign: str = "top"
    line_height: float = 1.0
    wrap: str = "word"
    opacity: float = 1.0
    layer_id: Optional[str] = None


@dataclass
class ImageNode:
    x: float
    y: float
    width: float
    height: float
    image: Image.Image
    opacity: float = 1.0
    layer_id: Optional[str] = None


@dataclass
class PolygonNode:
    """Regular polygon centred on (x, y)."""

    x: float
    y: float
    sides: int
    radius: float
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0
    opacity: float = 1.0
    layer_id: Optional[str] = None


@dataclass
class GroupNode:
    x: float
    y: float
    children: List["SceneNode"] = field(default_factory=list)
    opacity: float = 1.0
    layer_id: Optional[str] = None


SceneNode = Union[RectNode, TextNode, ImageNode, PolygonNode, GroupNode]


@dataclass
class AssetMaps:
    """Already-loaded images: frames keyed by template id, art keyed by card name."""

    frames: Dict[str, Image.Image] = field(default_factory=dict)
    art: Dict[str, Image.Image] = field(default_factory=dict)


@dataclass
class RenderContext:
    template: Template
    palette: Palette
    card: Optional[CardData] = None
    assets: AssetMaps = field(default_factory=AssetMaps)


def _opacity(value: Optional[float]) -> float:
    return 1.0 if value is None else float(value)


def fit_image(image: Image.Image, width: float, height: float, mode: str) -> Image.Image:
    """Scale ``image`` into a width x height box following the layer's fit mode."""
    size = (max(1, round(width)), max(1, round(height)))
    image = image.convert("RGBA")
    if mode == "cover":
        return ImageOps.fit(image, size, Image.LANCZOS)
    if mode == "contain":
        inner = ImageOps.contain(image, size, Image.LANCZOS)
        boxed = Image.new("RGBA", size, (0, 0, 0, 0))
        boxed.paste(inner, ((size[0] - inner.width) // 2, (size[1] - inner.height) // 2))
        return boxed
    return image.resize(size, Image.LANCZOS)


# ─────────────────────────────────────────────
# Layer converters
# ─────────────────────────────────────────────

def _rect_node(layer: RectLayer, ctx: RenderContext) -> RectNode:
    return RectNode(
        x=layer.x,
        y=layer.y,
        width=layer.width,
        height=layer.height,
        fill=resolve_rect_fill(layer, ctx.palette.class_colors, ctx.card),
        stroke=layer.stroke,
        stroke_width=layer.stroke_width or 0,
        corner_radius=layer.corner_radius or 0,
        opacity=_opacity(layer.opacity),
        layer_id=layer.id,
    )


def _text_node(layer: TextLayer, ctx: RenderContext) -> TextNode:
    return TextNode(
        x=layer.x,
        y=layer.y,
        width=layer.width,
        height=layer.height,
        text=resolve_field_text(layer.field, ctx.card),
        font_size=layer.font_size,
        font_family=layer.font_family or "sans-serif",
        font_style=layer.font_style or "normal",
        fill=layer.fill or "#ffffff",
        align=layer.align or "left",
        line_height=layer.line_height or 1.0,
        wrap=layer.wrap or "word",
        layer_id=layer.id,
    )


def _image_node(layer: ImageLayer, ctx: RenderContext) -> Union[ImageNode, GroupNode]:
    if layer.image_source == "frame":
        source = ctx.assets.frames.get(ctx.template.id)
    else:
        source = ctx.assets.art.get(ctx.card.name) if ctx.card else None

    if source is None:
        caption = ctx.card.name if ctx.card else f"[{layer.image_source}]"
        return GroupNode(
            x=layer.x,
            y=layer.y,
            layer_id=layer.id,
            children=[
                RectNode(0, 0, layer.width, layer.height, fill=PLACEHOLDER_FILL),
                TextNode(0, 0, layer.width, layer.height, caption, align="center", valign="middle"),
            ],
        )

    return ImageNode(
        x=layer.x,
        y=layer.y,
        width=layer.width,
        height=layer.height,
        image=fit_image(source, layer.width, layer.height, layer.image_fit),
        opacity=_opacity(layer.opacity),
        layer_id=layer.id,
    )


def _badge_node(layer: BadgeLayer, ctx: RenderContext) -> GroupNode:
    radius = min(layer.width, layer.height) / 2
    # a circle is drawn as an ellipse inscribed in a square rect with full rounding
    circle = RectNode(
        x=layer.width / 2 - radius,
        y=layer.height / 2 - radius,
        width=radius * 2,
        height=radius * 2,
        fill=layer.fill or "#000000",
        corner_radius=radius,
    )
    label = TextNode(
        0,
        0,
        layer.width,
        layer.height,
        resolve_field_text(layer.field, ctx.card),
        font_size=layer.font_size or 18,
        fill=layer.text_fill or "#ffffff",
        align="center",
        valign="middle",
    )
    return GroupNode(x=layer.x, y=layer.y, children=[circle, label], layer_id=layer.id)


def _phase_icons_node(layer: PhaseIconsLayer, ctx: RenderContext) -> GroupNode:
    phases = ctx.palette.phases_for(ctx.card)
    size = layer.icon_size
    font_size = layer.font_size or int(size * 0.6)
    group = GroupNode(x=layer.x, y=layer.y, layer_id=layer.id)
    for phase, (px, py) in zip(phases, phase_icon_offsets(layer, len(phases))):
        group.children.append(
            GroupNode(
                x=px,
                y=py,
                children=[
                    RectNode(0, 0, size, size, fill=layer.fill or "#333333", corner_radius=layer.corner_radius or 0),
                    TextNode(
                        0,
                        0,
                        size,
                        size,
                        ctx.palette.abbreviation(phase),
                        font_size=font_size,
                        fill=layer.text_fill or "#ffffff",
                        align="center",
                        valign="middle",
                    ),
                ],
            )
        )
    return group


def _rarity_diamond_node(layer: RarityDiamondLayer, ctx: RenderContext) -> GroupNode:
    diamond = PolygonNode(
        x=layer.width / 2,
        y=layer.height / 2,
        sides=4,
        radius=min(layer.width, layer.height) / 2,
        fill=resolve_rarity_fill(ctx.palette, ctx.card),
        stroke=layer.stroke,
        stroke_width=layer.stroke_width or 0,
    )
    return GroupNode(x=layer.x, y=layer.y, children=[diamond], opacity=_opacity(layer.opacity), layer_id=layer.id)


def build_layer_node(layer: LayerBase, ctx: RenderContext) -> SceneNode:
    if isinstance(layer, RectLayer):
        return _rect_node(layer, ctx)
    if isinstance(layer, TextLayer):
        return _text_node(layer, ctx)
    if isinstance(layer, ImageLayer):
        return _image_node(layer, ctx)
    if isinstance(layer, BadgeLayer):
        return _badge_node(layer, ctx)
    if isinstance(layer, PhaseIconsLayer):
        return _phase_icons_node(layer, ctx)
    if isinstance(layer, RarityDiamondLayer):
        return _rarity_diamond_node(layer, ctx)
    raise TypeError(f"Unsupported layer type: {type(layer).__name__}")


def is_layer_drawn(layer: LayerBase, card: Optional[CardData]) -> bool:
    return not layer.is_hidden and should_show_layer(layer, card)


def build_scene(ctx: RenderContext) -> List[SceneNode]:
    """Nodes for every drawn layer, bottom to top."""
    return [
        build_layer_node(layer, ctx)
        for layer in ctx.template.layers
        if is_layer_drawn(layer, ctx.card)
    ]
