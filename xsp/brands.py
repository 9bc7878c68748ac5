"""Pattern Maker thread brand lookup.

The table is read once from ``resources/pmaker_thread_brands.txt`` (or
the file named by ``XSP_THREAD_BRANDS_PATH``) and shared read-only by
every parse afterwards.
"""

from __future__ import annotations

import functools
import logging
from importlib import resources
from pathlib import Path
from typing import Dict

from . import settings

logger = logging.getLogger(__name__)

DEFAULT_BRAND_ID = 0
BLEND_DEFAULT_BRAND_ID = 255


def parse_brand_table(text: str) -> Dict[int, str]:
    table: Dict[int, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        brand_id, sep, name = line.partition(":")
        if not sep:
            raise ValueError(f"malformed thread brand line {line!r}")
        table[int(brand_id.strip())] = name.strip()
    return table


@functools.lru_cache(maxsize=None)
def thread_brands() -> Dict[int, str]:
    if settings.THREAD_BRANDS_PATH:
        text = Path(settings.THREAD_BRANDS_PATH).read_text(encoding="utf-8")
    else:
        text = (
            resources.files("xsp")
            .joinpath("resources", "pmaker_thread_brands.txt")
            .read_text(encoding="utf-8")
        )
    return parse_brand_table(text)


def brand_name(brand_id: int) -> str:
    if brand_id == BLEND_DEFAULT_BRAND_ID:
        brand_id = DEFAULT_BRAND_ID
    name = thread_brands().get(brand_id)
    if name is None:
        logger.debug("unknown thread brand id %d", brand_id)
        return f"Brand #{brand_id}"
    return name
