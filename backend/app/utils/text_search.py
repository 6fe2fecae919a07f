"""
Case-insensitive substring filters for LIKE queries.

User input is matched literally: % and _ typed into a search box are not
wildcards.
"""
from sqlalchemy import func, or_

LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    term = term.strip().lower()
    for char in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(char, LIKE_ESCAPE + char)
    return f"%{term}%"


def contains(column, term: str):
    """lower(column) LIKE %term%"""
    return func.lower(column).like(like_pattern(term), escape=LIKE_ESCAPE)


def contains_any(term: str, *columns):
    pattern = like_pattern(term)
    return or_(*[func.lower(c).like(pattern, escape=LIKE_ESCAPE) for c in columns])
