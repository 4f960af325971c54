"""Pack rendered card images into a zip archive or a PDF proof sheet."""

from __future__ import annotations

import io
import logging
import os
import zipfile
from typing import List, Optional, Sequence, Set, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

PICS_DIR = "pics/CUSTOM"

# (card name, PNG bytes)
RenderedCard = Tuple[str, bytes]


def _unique_entry(name: str, used: Set[str]) -> str:
    candidate = f"{PICS_DIR}/{name}.png"
    counter = 1
    while candidate in used:
        candidate = f"{PICS_DIR}/{name}-{counter}.png"
        counter += 1
    used.add(candidate)
    return candidate


def build_archive(
    images: Sequence[RenderedCard],
    catalogue_name: Optional[str] = None,
    catalogue: Optional[str] = None,
) -> bytes:
    """Zip ``images`` under ``pics/CUSTOM/<name>.png`` plus an optional catalogue file."""
    buffer = io.BytesIO()
    used: Set[str] = set()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, png in images:
            archive.writestr(_unique_entry(name, used), png)
        if catalogue_name and catalogue is not None:
            archive.writestr(catalogue_name, catalogue)
    return buffer.getvalue()


def export_pdf_from_list(images: Sequence[RenderedCard], output_path: str) -> str:
    """One PDF page per rendered card."""
    if not images:
        raise ValueError("No rendered cards to export")

    folder = os.path.dirname(output_path)
    if folder:
        os.makedirs(folder, exist_ok=True)

    pdf = canvas.Canvas(output_path, pagesize=letter)
    page_w, page_h = letter
    for name, png in images:
        pdf.drawImage(ImageReader(io.BytesIO(png)), 0, 0, width=page_w, height=page_h, preserveAspectRatio=True)
        pdf.showPage()
        logger.debug("Added %s to %s", name, output_path)
    pdf.save()
    logger.info("PDF saved: %s", output_path)
    return output_path


def archive_entries(archive: bytes) -> List[str]:
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return zf.namelist()
