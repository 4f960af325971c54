"""Batch export: render every card with its matching template and pack the result."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .models import CardData, Palette, Template
from .packaging import RenderedCard, build_archive
from .renderer import CardRenderer
from .scene import AssetMaps

logger = logging.getLogger(__name__)


@dataclass
class ExportProgress:
    phase: str  # "rendering" | "packing"
    current: int
    total: int


@dataclass
class ExportResult:
    archive: bytes
    warnings: List[str] = field(default_factory=list)
    rendered: List[RenderedCard] = field(default_factory=list)


ProgressCallback = Callable[[ExportProgress], None]


def find_template(card: CardData, templates: Sequence[Template]) -> Optional[Template]:
    for template in templates:
        if template.applies_to(card.type):
            return template
    return None


def render_all(
    cards: Sequence[CardData],
    templates: Sequence[Template],
    palette: Palette,
    assets: Optional[AssetMaps] = None,
    on_progress: Optional[ProgressCallback] = None,
):
    """Render cards one at a time, in input order. Returns (rendered, warnings)."""
    renderer = CardRenderer(palette, assets)
    rendered: List[RenderedCard] = []
    warnings: List[str] = []
    total = len(cards)

    for index, card in enumerate(cards, start=1):
        template = find_template(card, templates)
        if template is None:
            message = f'Skipped "{card.name}": no template for type "{card.type}"'
            logger.warning(message)
            warnings.append(message)
        else:
            rendered.append((card.name, renderer.render(card, template)))
            logger.debug("Rendered %s with template %s", card.name, template.name)
        if on_progress:
            on_progress(ExportProgress("rendering", index, total))

    return rendered, warnings


def export_all(
    cards: Sequence[CardData],
    templates: Sequence[Template],
    palette: Palette,
    assets: Optional[AssetMaps] = None,
    on_progress: Optional[ProgressCallback] = None,
    catalogue_name: Optional[str] = None,
    catalogue: Optional[str] = None,
) -> ExportResult:
    """Render and zip all cards. Never raises for missing templates or images."""
    rendered, warnings = render_all(cards, templates, palette, assets, on_progress)

    archive = build_archive(rendered, catalogue_name, catalogue)
    if on_progress:
        on_progress(ExportProgress("packing", 1, 1))

    logger.info("Exported %d of %d cards (%d warnings)", len(rendered), len(cards), len(warnings))
    return ExportResult(archive=archive, warnings=warnings, rendered=rendered)
