"""CMS downloads harvester package."""
from __future__ import annotations

from pathlib import Path
from typing import Any

from . import filtering, harvest, heuristics, markers, normalize, source

__all__ = [
    "source",
    "markers",
    "heuristics",
    "normalize",
    "filtering",
    "harvest",
    "harvest_page",
]


def harvest_page(page_path: Path, **options: Any) -> list[dict[str, str]]:
    """Convenience wrapper returning the valid records of an HTML page as dicts."""
    from .harvest import harvest_items
    from .source import load_html_items

    items = load_html_items(page_path, **options)
    if items is None:
        return []
    return [record.to_dict() for record in harvest_items(items)]
