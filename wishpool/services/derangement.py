from __future__ import annotations

import random
from typing import Hashable, List, Optional, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)

# For n >= 2 roughly 1/e of all permutations have no fixed point, so the
# expected number of draws is about 2.7.
MAX_ATTEMPTS = 2000


def is_derangement(ids: Sequence[T], perm: Sequence[T]) -> bool:
    return len(ids) == len(perm) and all(a != b for a, b in zip(ids, perm))


def derangement(
    ids: Sequence[T],
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> Optional[List[T]]:
    """Return a fixed-point-free permutation of ``ids`` or ``None``.

    The result is aligned with ``ids``: ``zip(ids, result)`` yields the
    giver -> receiver pairs. ``None`` means infeasible, either because fewer
    than two ids were given or because ``max_attempts`` shuffles all had a
    fixed point.
    """
    base = list(ids)
    if len(base) < 2:
        return None

    if rng is None:
        rng = random.Random(seed)

    for _ in range(max_attempts):
        perm = list(base)
        rng.shuffle(perm)
        if is_derangement(base, perm):
            return perm

    return None
