"""
Leaderboard item references

Every board is keyed by a string ref: "quiz:<quiz_id>" or "game:<slug>".
Clients may send refs with or without the prefix.
"""

from typing import Tuple, Union

from app.core import errors
from app.leaderboards.models import ScoreType


def parse_score_type(value: Union[str, ScoreType, None]) -> ScoreType:
    if isinstance(value, ScoreType):
        return value
    try:
        return ScoreType(str(value or "").strip().lower())
    except ValueError:
        raise errors.ValidationError('type must be "quiz" or "game"')


def normalize_ref(score_type: Union[str, ScoreType], ref) -> str:
    """Canonical item ref; applying it twice gives the same result"""
    kind = parse_score_type(score_type)
    raw = str(ref if ref is not None else "").strip()
    prefix = f"{kind.value}:"

    key = raw[len(prefix):] if raw.startswith(prefix) else raw
    if not key.strip():
        raise errors.ValidationError("ref is required")

    return f"{prefix}{key}"


def split_ref(item_ref: str) -> Tuple[ScoreType, str]:
    kind, sep, key = str(item_ref).partition(":")
    if not sep or not key:
        raise errors.ValidationError(f"Malformed item ref: {item_ref!r}")
    return parse_score_type(kind), key


def quiz_ref(quiz_id: str) -> str:
    return normalize_ref(ScoreType.QUIZ, quiz_id)
