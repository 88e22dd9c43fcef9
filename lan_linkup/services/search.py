"""Case-insensitive substring matching helpers."""
from sqlalchemy import or_

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Build a LIKE pattern matching ``text`` anywhere, with wildcards in ``text`` taken literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def icontains_any(text: str, *columns):
    """SQL clause: any of ``columns`` contains ``text``, ignoring case."""
    pattern = contains_pattern(text)
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))
