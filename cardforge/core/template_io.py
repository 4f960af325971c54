"""Template import/export as standalone JSON documents."""

from __future__ import annotations

import json
import os

from .errors import TemplateFormatError
from .models import Template
from .project import new_id


def template_to_json(template: Template) -> str:
    return json.dumps(template.to_dict(), ensure_ascii=False, indent=2)


def template_from_json(text: str) -> Template:
    """Parse a template document. The imported template always gets a fresh id;
    layer ids are kept as they are."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TemplateFormatError(f"Template is not valid JSON: {exc}") from exc
    template = Template.from_dict(data)
    template.id = new_id()
    return template


def export_template(template: Template, path: str) -> str:
    if not path.lower().endswith(".json"):
        path += ".json"
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(template_to_json(template))
    return path


def import_template(path: str) -> Template:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Template file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return template_from_json(f.read())
