import io
import zipfile

from PIL import Image

from cardforge.core.exporter import export_all, find_template, render_all
from cardforge.core.models import Template


class TestFindTemplate:
    def test_first_match_wins(self, basic_template, axehand):
        second = Template(id="t9", name="Other", card_types=["Slayer"])
        assert find_template(axehand, [basic_template, second]) is basic_template
        assert find_template(axehand, [second, basic_template]) is second

    def test_no_match(self, cards, basic_template):
        assert find_template(cards[2], [basic_template]) is None


class TestExportAll:
    def test_skip_accounting(self, cards, basic_template, palette):
        result = export_all(cards, [basic_template], palette)
        assert len(result.rendered) == 2
        assert result.warnings == ['Skipped "Deep Pit": no template for type "Dungeon"']
        with zipfile.ZipFile(io.BytesIO(result.archive)) as zf:
            assert sorted(zf.namelist()) == ["pics/CUSTOM/Axehand.png", "pics/CUSTOM/Quick Step.png"]
            image = Image.open(io.BytesIO(zf.read("pics/CUSTOM/Axehand.png")))
            assert image.size == (375, 523)

    def test_progress_phases(self, cards, basic_template, palette):
        events = []
        export_all(cards, [basic_template], palette, on_progress=events.append)
        assert [(e.phase, e.current, e.total) for e in events] == [
            ("rendering", 1, 3),
            ("rendering", 2, 3),
            ("rendering", 3, 3),
            ("packing", 1, 1),
        ]

    def test_render_order_follows_input(self, cards, basic_template, palette):
        rendered, _ = render_all(list(reversed(cards)), [basic_template], palette)
        assert [name for name, _ in rendered] == ["Quick Step", "Axehand"]

    def test_empty_input(self, palette, basic_template):
        result = export_all([], [basic_template], palette)
        assert result.rendered == []
        assert result.warnings == []
        with zipfile.ZipFile(io.BytesIO(result.archive)) as zf:
            assert zf.namelist() == []

    def test_no_templates_warns_for_every_card(self, cards, palette):
        result = export_all(cards, [], palette)
        assert len(result.warnings) == 3
        assert result.rendered == []

    def test_catalogue_is_added(self, cards, basic_template, palette):
        result = export_all(cards, [basic_template], palette, catalogue_name="set.xml", catalogue="<cards/>")
        with zipfile.ZipFile(io.BytesIO(result.archive)) as zf:
            assert zf.read("set.xml") == b"<cards/>"
