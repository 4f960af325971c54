"""Card lists stored as JSON documents."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, List

from .errors import CardDataError
from .models import CardData

logger = logging.getLogger(__name__)


def cards_from_data(data: Any) -> List[CardData]:
    """Accept either a bare list of cards or an object with a ``cards`` list."""
    if isinstance(data, dict):
        data = data.get("cards")
    if not isinstance(data, list):
        raise CardDataError("Card document must be a list or an object with a 'cards' list")

    cards: List[CardData] = []
    seen = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise CardDataError(f"Card #{index} is not a JSON object")
        if not entry.get("id") or not entry.get("name"):
            raise CardDataError(f"Card #{index} needs both an id and a name")
        card = CardData.from_dict(entry)
        if card.id in seen:
            raise CardDataError(f"Duplicate card id: {card.id}")
        seen.add(card.id)
        cards.append(card)
    return cards


class CardListLoader:
    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[CardData]:
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"Card list not found: {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise CardDataError(f"Card list is not valid JSON: {exc}") from exc

        cards = cards_from_data(data)
        logger.info("Loaded %d cards from %s", len(cards), self.path)
        return cards

