"""Headless Pillow rasterizer for template scenes."""

from __future__ import annotations

import io
import logging
import math
from functools import lru_cache
from typing import List, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .models import CardData, Palette, Template
from .scene import (
    AssetMaps,
    GroupNode,
    ImageNode,
    PolygonNode,
    RectNode,
    RenderContext,
    SceneNode,
    TextNode,
    build_scene,
)

logger = logging.getLogger(__name__)

# family -> (regular, bold, italic, bold italic)
FONT_FILES = {
    "sans-serif": ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf", "DejaVuSans-Oblique.ttf", "DejaVuSans-BoldOblique.ttf"),
    "serif": ("DejaVuSerif.ttf", "DejaVuSerif-Bold.ttf", "DejaVuSerif-Italic.ttf", "DejaVuSerif-BoldItalic.ttf"),
    "monospace": (
        "DejaVuSansMono.ttf",
        "DejaVuSansMono-Bold.ttf",
        "DejaVuSansMono-Oblique.ttf",
        "DejaVuSansMono-BoldOblique.ttf",
    ),
}
_STYLE_INDEX = {"normal": 0, "bold": 1, "italic": 2, "bold italic": 3}


@lru_cache(maxsize=64)
def load_font(family: str, style: str, size: int):
    """Resolve a font by family and style, falling back to Pillow's default face."""
    size = max(1, size)
    candidates = []
    files = FONT_FILES.get(family.lower())
    if files:
        candidates.append(files[_STYLE_INDEX.get(style, 0)])
    else:
        candidates.append(family)
        if not family.lower().endswith((".ttf", ".otf")):
            candidates.append(f"{family}.ttf")
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def parse_color(value: Optional[str]) -> Optional[Tuple[int, int, int, int]]:
    if not value or value == "transparent":
        return None
    try:
        return ImageColor.getcolor(value, "RGBA")
    except ValueError:
        logger.warning("Ignoring unparsable colour %r", value)
        return None


def wrap_lines(text: str, font, max_width: float, wrap: str = "word") -> List[str]:
    """Split ``text`` on line breaks, then word-wrap each paragraph to ``max_width``."""
    lines: List[str] = []
    for paragraph in text.split("\n"):
        if wrap == "none" or max_width <= 0:
            lines.append(paragraph)
            continue
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if current and font.getlength(candidate) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


class CardRenderer:
    """Draws scene nodes onto an RGBA canvas sized to the template."""

    def __init__(self, palette: Palette, assets: Optional[AssetMaps] = None):
        self.palette = palette
        self.assets = assets or AssetMaps()

    # -------------------------------------------------
    def render_image(self, card: Optional[CardData], template: Template) -> Image.Image:
        ctx = RenderContext(template=template, palette=self.palette, card=card, assets=self.assets)
        size = (max(1, int(template.width)), max(1, int(template.height)))
        canvas = Image.new("RGBA", size, (0, 0, 0, 0))
        for node in build_scene(ctx):
            self._draw(canvas, node, 0.0, 0.0, 1.0)
        return canvas

    # -------------------------------------------------
    def render(self, card: Optional[CardData], template: Template) -> bytes:
        """Render and serialise to PNG bytes."""
        buffer = io.BytesIO()
        self.render_image(card, template).save(buffer, "PNG")
        return buffer.getvalue()

    # -------------------------------------------------
    def _draw(self, canvas: Image.Image, node: SceneNode, ox: float, oy: float, opacity: float) -> None:
        if isinstance(node, GroupNode):
            for child in node.children:
                self._draw(canvas, child, ox + node.x, oy + node.y, opacity * node.opacity)
            return

        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        if isinstance(node, RectNode):
            self._draw_rect(overlay, node, ox, oy)
        elif isinstance(node, TextNode):
            self._draw_text(overlay, node, ox, oy)
        elif isinstance(node, ImageNode):
            overlay.paste(node.image, (round(ox + node.x), round(oy + node.y)), node.image)
        elif isinstance(node, PolygonNode):
            self._draw_polygon(overlay, node, ox, oy)
        else:
            raise TypeError(f"Unsupported scene node: {type(node).__name__}")
        _composite(canvas, overlay, opacity * node.opacity)

    # -------------------------------------------------
    def _draw_rect(self, overlay: Image.Image, node: RectNode, ox: float, oy: float) -> None:
        if node.width < 1 or node.height < 1:
            return
        x0, y0 = ox + node.x, oy + node.y
        box = (x0, y0, x0 + node.width - 1, y0 + node.height - 1)
        fill = parse_color(node.fill)
        outline = parse_color(node.stroke) if node.stroke_width else None
        width = max(0, round(node.stroke_width))
        draw = ImageDraw.Draw(overlay)
        if node.corner_radius:
            draw.rounded_rectangle(box, radius=node.corner_radius, fill=fill, outline=outline, width=width)
        else:
            draw.rectangle(box, fill=fill, outline=outline, width=width)

    # -------------------------------------------------
    def _draw_text(self, overlay: Image.Image, node: TextNode, ox: float, oy: float) -> None:
        fill = parse_color(node.fill)
        if fill is None or not node.text:
            return
        font = load_font(node.font_family, node.font_style, int(node.font_size))
        lines = wrap_lines(node.text, font, node.width, node.wrap)
        line_px = node.font_size * node.line_height

        top = oy + node.y
        if node.valign == "middle":
            top += (node.height - line_px * len(lines)) / 2

        draw = ImageDraw.Draw(overlay)
        for i, line in enumerate(lines):
            left = ox + node.x
            if node.align in ("center", "right"):
                slack = node.width - font.getlength(line)
                left += slack / 2 if node.align == "center" else slack
            draw.text((left, top + i * line_px), line, font=font, fill=fill)

    # -------------------------------------------------
    def _draw_polygon(self, overlay: Image.Image, node: PolygonNode, ox: float, oy: float) -> None:
        cx, cy = ox + node.x, oy + node.y
        points = [
            (
                cx + node.radius * math.cos(-math.pi / 2 + 2 * math.pi * i / node.sides),
                cy + node.radius * math.sin(-math.pi / 2 + 2 * math.pi * i / node.sides),
            )
            for i in range(node.sides)
        ]
        outline = parse_color(node.stroke) if node.stroke_width else None
        ImageDraw.Draw(overlay).polygon(
            points,
            fill=parse_color(node.fill),
            outline=outline,
            width=max(1, round(node.stroke_width)),
        )


def _composite(canvas: Image.Image, overlay: Image.Image, opacity: float) -> None:
    if opacity <= 0:
        return
    if opacity < 1:
        alpha = overlay.getchannel("A").point(lambda a: int(a * opacity))
        overlay.putalpha(alpha)
    canvas.alpha_composite(overlay)


def render_card(
    card: Optional[CardData],
    template: Template,
    palette: Palette,
    assets: Optional[AssetMaps] = None,
) -> bytes:
    """Render one card to PNG bytes of exactly ``template`` canvas size.

    Each call draws on its own canvas, so concurrent calls for different
    cards do not share state.
    """
    return CardRenderer(palette, assets).render(card, template)
