"""
Shared utility functions for routers and services
"""
import json
import logging
import math
import re
from datetime import datetime
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


def slugify(title: str) -> str:
    """
    URL-safe slug from a title.

    Lowercase, drop anything outside [a-z0-9 -], turn whitespace runs into a
    single hyphen, collapse repeated hyphens and trim hyphens at both ends.
    """
    slug = (title or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def reading_time(content: str) -> int:
    """Minutes to read, at ~200 words per minute"""
    return math.ceil(len((content or "").split(" ")) / WORDS_PER_MINUTE)


def parse_tags(value) -> List[str]:
    """Comma separated string (or list) -> list of non-empty stripped tags"""
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable = value.split(",")
    else:
        items = value
    return [str(tag).strip() for tag in items if str(tag).strip()]


def log_endpoint_event(endpoint: str, resource_id: Optional[str] = None, result: str = "success", details: Optional[dict] = None):
    """Log endpoint execution to app.log"""
    logger.info(
        f"{endpoint} | resource={resource_id or 'none'} | {result} | "
        f"{datetime.now().isoformat()} | {json.dumps(details or {}, default=str)}"
    )
