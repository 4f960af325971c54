import io

import pytest
from PIL import Image

from cardforge.core.packaging import archive_entries, build_archive, export_pdf_from_list


def _png(color="red"):
    buffer = io.BytesIO()
    Image.new("RGB", (30, 40), color).save(buffer, "PNG")
    return buffer.getvalue()


class TestBuildArchive:
    def test_entries_live_under_pics_custom(self):
        archive = build_archive([("Axehand", _png())])
        assert archive_entries(archive) == ["pics/CUSTOM/Axehand.png"]

    def test_colliding_names_get_suffix(self):
        archive = build_archive([("Twin", _png()), ("Twin", _png("blue")), ("Twin", _png("green"))])
        assert archive_entries(archive) == [
            "pics/CUSTOM/Twin.png",
            "pics/CUSTOM/Twin-1.png",
            "pics/CUSTOM/Twin-2.png",
        ]

    def test_catalogue_at_root(self):
        archive = build_archive([], catalogue_name="cards.xml", catalogue="<cards/>")
        assert archive_entries(archive) == ["cards.xml"]

    def test_catalogue_name_without_document_is_skipped(self):
        assert archive_entries(build_archive([], catalogue_name="cards.xml")) == []


class TestPdfExport:
    def test_writes_pdf(self, tmp_path):
        target = tmp_path / "out" / "cards.pdf"
        path = export_pdf_from_list([("A", _png()), ("B", _png("blue"))], str(target))
        assert path == str(target)
        assert target.read_bytes().startswith(b"%PDF")

    def test_empty_list_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            export_pdf_from_list([], str(tmp_path / "cards.pdf"))
