from datetime import datetime
from typing import Any, Dict, List, Optional

from darksignal import db
from darksignal.models import Score

LEADERBOARD_LIMIT = 10
RECENT_LIMIT = 50

_TRUE_STRINGS = {'true', '1', 'yes', 'on'}
_FALSE_STRINGS = {'false', '0', 'no', 'off', ''}


def _coerce_str(value) -> Optional[str]:
    return None if value is None else str(value)


def _coerce_int(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return int(value)
    return int(str(value).strip())


def _coerce_bool(value) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f'Cannot interpret {value!r} as a boolean')


def coerce_score_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Type-coerce a run record. Missing fields stay None; nothing else is validated.

    Raises ValueError/TypeError when a value cannot be coerced at all.
    """
    return {
        'player': _coerce_str(data.get('player')),
        'time': _coerce_int(data.get('time')),
        'difficulty': _coerce_str(data.get('difficulty')),
        'won': _coerce_bool(data.get('won')),
    }


def append_score(data: Dict[str, Any], date: Optional[datetime] = None) -> Score:
    """Store one record. ``date`` is when the run ended; it defaults to now."""
    fields = coerce_score_payload(data)
    score = Score(**fields)
    if date is not None:
        score.date = date
    db.session.add(score)
    db.session.commit()
    return score


def top_scores(limit: int = LEADERBOARD_LIMIT) -> List[Score]:
    """Winning runs, fastest first."""
    return (
        Score.query.filter(Score.won.is_(True))
        .order_by(Score.time.asc().nulls_last(), Score.id.asc())
        .limit(limit)
        .all()
    )


def recent_scores(limit: int = RECENT_LIMIT) -> List[Score]:
    return Score.query.order_by(Score.date.desc(), Score.id.desc()).limit(limit).all()
