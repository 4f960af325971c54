from __future__ import annotations

from typing import Callable, List, Sequence

from PySide6.QtCore import QRect, Qt, Signal
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import QGridLayout, QLabel, QScrollArea, QVBoxLayout, QWidget

from cardforge.core.exporter import find_template
from cardforge.core.models import CardData, Template
from cardforge.core.preview import NO_TEMPLATE, RENDERED, LazyPreviewTile


class PreviewTileWidget(QWidget):
    """Thumbnail for one card; shows a placeholder until its tile renders."""

    def __init__(self, tile: LazyPreviewTile, thumb_width: int = 180, parent=None):
        super().__init__(parent)
        self.tile = tile
        self.thumb_width = thumb_width

        layout = QVBoxLayout()
        self.image = QLabel()
        self.image.setAlignment(Qt.AlignCenter)
        self.image.setMinimumSize(thumb_width, int(thumb_width * 1.4))
        self.caption = QLabel(tile.card.name)
        self.caption.setAlignment(Qt.AlignCenter)
        layout.addWidget(self.image)
        layout.addWidget(self.caption)
        self.setLayout(layout)

        tile.finished.connect(lambda _tile: self.update_image())
        self.update_image()

    def update_image(self):
        if self.tile.state == RENDERED and self.tile.image:
            pixmap = QPixmap()
            pixmap.loadFromData(self.tile.image, "PNG")
            self.image.setPixmap(pixmap.scaledToWidth(self.thumb_width, Qt.SmoothTransformation))
        elif self.tile.state == NO_TEMPLATE:
            self.image.setText("No template")
        else:
            self.image.setText("...")


class PreviewGrid(QScrollArea):
    """Scrollable grid of card previews, rendered only once scrolled into view."""

    tileRendered = Signal(str)

    def __init__(
        self,
        render: Callable[[CardData, Template], bytes],
        columns: int = 4,
        parent=None,
    ):
        super().__init__(parent)
        self._render = render
        self.columns = columns
        self.tiles: List[PreviewTileWidget] = []

        self.setWidgetResizable(True)
        self._container = QWidget()
        self._grid = QGridLayout()
        self._container.setLayout(self._grid)
        self.setWidget(self._container)

        self.verticalScrollBar().valueChanged.connect(lambda _value: self.load_visible())

    def set_cards(self, cards: Sequence[CardData], templates: Sequence[Template]):
        for widget in self.tiles:
            self._grid.removeWidget(widget)
            widget.deleteLater()
        self.tiles = []

        for idx, card in enumerate(cards):
            tile = LazyPreviewTile(card, find_template(card, templates), self._render)
            tile.finished.connect(lambda done: self.tileRendered.emit(done.card.id))
            widget = PreviewTileWidget(tile)
            row, col = divmod(idx, self.columns)
            self._grid.addWidget(widget, row, col)
            self.tiles.append(widget)
        self.load_visible()

    def visible_tiles(self) -> List[PreviewTileWidget]:
        viewport_rect = QRect(
            self.horizontalScrollBar().value(),
            self.verticalScrollBar().value(),
            self.viewport().width(),
            self.viewport().height(),
        )
        return [widget for widget in self.tiles if widget.geometry().intersects(viewport_rect)]

    def load_visible(self) -> int:
        """Ask every tile intersecting the viewport to render. Returns how many started."""
        return sum(1 for widget in self.visible_tiles() if widget.tile.on_visible())

    def resizeEvent(self, event):  # noqa: N802
        super().resizeEvent(event)
        self.load_visible()

    def showEvent(self, event):  # noqa: N802
        super().showEvent(event)
        self.load_visible()
