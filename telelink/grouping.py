"""
Group-by, tally and top-K primitives.

Every higher-level engine folds events through these three functions, so
they share one set of rules: empty input gives an empty result, NaN or
missing measures count as zero, and untimed events are still counted but
never move a first/last-seen bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Tuple, TypeVar, Union

from .errors import ConfigurationError
from .events import InteractionEvent, has_timestamp, measure_or_zero

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class Tally:
    count: int
    total: float
    first_seen: Optional[datetime]
    last_seen: Optional[datetime]


def group_by(
    events: Iterable[InteractionEvent],
    key_fn: Callable[[InteractionEvent], Optional[K]],
) -> Dict[K, List[InteractionEvent]]:
    """Events per key in first-occurrence order; ``None`` keys are left out."""
    groups: Dict[K, List[InteractionEvent]] = {}
    for event in events:
        key = key_fn(event)
        if key is None:
            continue
        groups.setdefault(key, []).append(event)
    return groups


def tally(
    events: Iterable[InteractionEvent],
    key_fn: Callable[[InteractionEvent], Optional[K]],
    measure_fn: Optional[Callable[[InteractionEvent], Optional[float]]] = None,
) -> Dict[K, Tally]:
    """Count, summed measure and time bounds per key."""
    measure_fn = measure_fn or (lambda e: e.measure)
    acc: Dict[K, list] = {}
    for event in events:
        key = key_fn(event)
        if key is None:
            continue
        slot = acc.setdefault(key, [0, 0.0, None, None])
        slot[0] += 1
        slot[1] += measure_or_zero(measure_fn(event))
        if has_timestamp(event):
            ts = event.timestamp
            if slot[2] is None or ts < slot[2]:
                slot[2] = ts
            if slot[3] is None or ts > slot[3]:
                slot[3] = ts
    return {key: Tally(*slot) for key, slot in acc.items()}


def top_k(
    tallies: Dict[K, Tally],
    k: Optional[int] = None,
    order_by: Union[str, Callable[[Tally], float]] = "count",
) -> List[Tuple[K, Tally]]:
    """Highest first; equal values fall back to the key's natural order."""
    if k is not None and k < 0:
        raise ConfigurationError(f"k must be >= 0, got {k}")
    if callable(order_by):
        score = order_by
    elif order_by in ("count", "total"):
        score = lambda t: getattr(t, order_by)  # noqa: E731
    else:
        raise ConfigurationError(f"order_by must be 'count', 'total' or a callable, got {order_by!r}")
    ranked = sorted(tallies.items(), key=lambda item: (-score(item[1]), item[0]))
    return ranked if k is None else ranked[:k]
