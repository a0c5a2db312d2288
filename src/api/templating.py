"""Shared template and static file locations for pages and e-mails."""

from __future__ import annotations

from pathlib import Path

from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.template.config import TemplateConfig

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent.parent / "static"
USER_PHOTOS_DIR = STATIC_DIR / "img" / "users"

template_config = TemplateConfig(directory=TEMPLATES_DIR, engine=JinjaTemplateEngine)
