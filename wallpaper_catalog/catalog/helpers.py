import enum
from datetime import datetime, timezone
from typing import Iterable


class PermissionLevel(enum.IntEnum):
    USER = 0
    MODERATOR = 1
    CREATOR = 2
    ADMIN = 3
    DEVELOPER = 4


def get_utc_now() -> datetime:
    """Naive UTC timestamp, matching how DateTime(timezone=False) columns store it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_tag_title(title: str) -> str:
    return " ".join((title or "").strip().split()).lower()


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """
    Normalize a list of tag titles:
      - strip and collapse inner whitespace
      - lower-case
      - drop empties and duplicates, keeping first-seen order
    """
    if not tags:
        return []
    out: list[str] = []
    for t in tags:
        n = normalize_tag_title(t)
        if n and n not in out:
            out.append(n)
    return out


def escape_sql_like_string(s: str, escape: str = "!") -> tuple[str, str]:
    """Escapes %, _ and the escape char itself in a LIKE pattern.
    Returns (escaped_string, escape_char). Caller should wrap with wildcards as needed.
    """
    s = s.replace(escape, escape + escape)
    s = s.replace("%", escape + "%").replace("_", escape + "_")
    return s, escape


def count_pages(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return -(-total // limit)
