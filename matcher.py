# matcher.py
from typing import List, Optional

from config import (
    AGE_PROXIMITY_POINTS,
    AGE_PROXIMITY_YEARS,
    BASELINE_SCORE,
    MAX_MATCH_SCORE,
    SAME_GOAL_POINTS,
    SHARED_INTEREST_POINTS,
)
from models import DEFAULT_GENDER, EVERYONE, ScoredMatch, Snapshot, User


def _accepts(preference: Optional[str], gender: Optional[str]) -> bool:
    preference = preference or EVERYONE
    return preference == EVERYONE or preference == (gender or DEFAULT_GENDER)


def score(a: User, b: User) -> int:
    """
    Compatibility of `b` for `a`, in [0, 99].

    Either side's gender preference excluding the other is a hard block (0).
    Otherwise: baseline 50, +15 per shared interest, +10 when the ages are
    within 3 years, +20 for the same goal, capped at 99.
    """
    if not _accepts(a.interested_in, b.gender):
        return 0
    if not _accepts(b.interested_in, a.gender):
        return 0

    total = BASELINE_SCORE
    total += len(set(a.interests) & set(b.interests)) * SHARED_INTEREST_POINTS
    if abs(a.age - b.age) <= AGE_PROXIMITY_YEARS:
        total += AGE_PROXIMITY_POINTS
    if a.looking_for == b.looking_for:
        total += SAME_GOAL_POINTS

    return min(total, MAX_MATCH_SCORE)


def rank_matches(user: User, pool: List[User]) -> List[ScoredMatch]:
    """
    Score every other user in `pool` against `user`, best first.
    Blocked (zero) candidates are kept; equal scores keep pool order.
    """
    candidates = [
        ScoredMatch(**other.model_dump(), match_score=score(user, other))
        for other in pool
        if other.id != user.id
    ]
    # sorted() is stable, so ties stay in pool order
    return sorted(candidates, key=lambda m: -m.match_score)


def find_matches_for_user(snapshot: Snapshot, user_id: int) -> Optional[List[ScoredMatch]]:
    """Ranked matches for `user_id`, or None if no such user exists."""
    me = snapshot.find_user(user_id)
    if me is None:
        return None
    return rank_matches(me, snapshot.users)
