"""
Score ranking for resolved stories.
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

from beststories.models import Story


def rank_stories(pairs: Sequence[Tuple[int, Story]], n: int) -> List[Story]:
    """
    Order stories by score, highest first, and keep the first ``n``.

    ``sorted`` is stable, so equal scores keep the order of ``pairs``
    (the upstream best-list order). Asking for more than exist returns all;
    a non-positive ``n`` returns nothing.
    """
    ordered = sorted(pairs, key=lambda pair: pair[1].score, reverse=True)
    return [story for _, story in ordered[: max(n, 0)]]
