"""
Jinja2 Template Configuration

Centralized template loader for rendering HTML responses.
This instance is imported by route handlers to render templates.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from damibook.utils.text import format_timestamp

TEMPLATES_DIR = Path(__file__).parent / "templates"

# Global templates instance pointing to the templates directory
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# {{ post.created_at | timestamp }}
templates.env.filters["timestamp"] = format_timestamp
