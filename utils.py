# utils.py
import json
import re
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from errors import ValidationError

_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_input(value: Optional[str]) -> Optional[str]:
    """Strip markup-like tags and surrounding whitespace. Non-strings pass through."""
    if not isinstance(value, str):
        return value
    return _TAG_RE.sub("", value).strip()


def parse_interests(raw: Optional[str]) -> List[str]:
    """
    Parse the JSON array submitted with a registration, e.g. '["music", "hiking"]'.
    Tags are sanitized, blanks dropped and duplicates removed (first one wins).
    """
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except ValueError:
        raise ValidationError("Interests must be a JSON array.")
    if not isinstance(tags, list):
        raise ValidationError("Interests must be a JSON array.")

    seen = []
    for tag in tags:
        tag = sanitize_input(str(tag))
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_user_id(existing_ids: Iterable[int]) -> int:
    # millisecond timestamp, bumped past the largest id on collision
    candidate = int(time.time() * 1000)
    highest = max(existing_ids, default=0)
    return candidate if candidate > highest else highest + 1
