"""Render-once preview tiles, triggered the first time a tile becomes visible."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .events import EventChannel
from .models import CardData, Template

logger = logging.getLogger(__name__)

IDLE = "idle"
RENDERING = "rendering"
RENDERED = "rendered"
NO_TEMPLATE = "no_template"


class LazyPreviewTile:
    """One card preview. ``render`` is called at most once per successful render."""

    def __init__(
        self,
        card: CardData,
        template: Optional[Template],
        render: Callable[[CardData, Template], bytes],
    ):
        self.card = card
        self.template = template
        self._render = render
        self.state = IDLE if template is not None else NO_TEMPLATE
        self.image: Optional[bytes] = None
        self.finished = EventChannel("tile.finished")

    def on_visible(self) -> bool:
        """Start rendering if the tile has not been rendered and is not in flight."""
        if self.state != IDLE:
            return False
        self.state = RENDERING
        try:
            self.image = self._render(self.card, self.template)
        except Exception:
            logger.exception("Preview render failed for %s", self.card.name)
            self.state = IDLE
            return False
        self.state = RENDERED
        self.finished.emit(self)
        return True

    def reset(self) -> None:
        """Drop the cached image, e.g. after the template changed."""
        if self.state == RENDERED:
            self.state = IDLE
            self.image = None
