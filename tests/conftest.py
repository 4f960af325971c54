import pytest

from cardforge.core.models import (
    CardData,
    ImageLayer,
    PhaseIconsLayer,
    RarityDiamondLayer,
    RectLayer,
    Template,
    TextLayer,
    default_palette,
)
from cardforge.core.project import ProjectStore


@pytest.fixture
def palette():
    return default_palette()


@pytest.fixture
def axehand():
    return CardData(
        id="c1",
        name="Axehand",
        card_class="Warrior",
        type="Slayer",
        rarity="rare",
        cost=3,
        power=4,
        hp=2,
        effect="Strike first.\\nThen strike again.",
    )


@pytest.fixture
def cards(axehand):
    return [
        axehand,
        CardData(id="c2", name="Quick Step", card_class="Rogue", type="Action", rarity="common", cost=1),
        CardData(id="c3", name="Deep Pit", type="Dungeon", rarity="epic"),
    ]


@pytest.fixture
def basic_template():
    return Template(
        id="t1",
        name="Basic",
        card_types=["Slayer", "Action"],
        width=375,
        height=523,
        layers=[
            RectLayer(id="bg", x=0, y=0, width=375, height=523, fill="#222222"),
            TextLayer(id="title", x=10, y=10, width=355, height=30, field="name", fill="#ffffff"),
        ],
    )


@pytest.fixture
def full_template():
    return Template(
        id="t2",
        name="Full",
        card_types=["Action"],
        width=375,
        height=523,
        layers=[
            RectLayer(id="bg", width=375, height=523, fill_source="class.primary", fill="#123456"),
            ImageLayer(id="art", x=20, y=60, width=335, height=240, image_source="art"),
            TextLayer(id="effect", x=20, y=320, width=335, height=120, field="effect", show_if_field="effect"),
            PhaseIconsLayer(id="phases", x=20, y=460, width=200, height=30),
            RarityDiamondLayer(id="rarity", x=340, y=10, width=24, height=24),
        ],
    )


@pytest.fixture
def store(basic_template, cards, palette):
    return ProjectStore(templates=[basic_template], cards=cards, palette=palette)
