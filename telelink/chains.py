"""
Gap segmentation: bursts of back-and-forth between two parties.

A chain is a maximal run of events between the same unordered pair in
which no two consecutive events are more than ``max_gap`` apart. Runs
shorter than ``min_chain_length`` are discarded.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

from .config import DEFAULT_CONFIG, EngineConfig, check_max_gap
from .events import InteractionEvent, event_pair, frame_from_events, has_timestamp, measure_or_zero
from .grouping import group_by

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainLink:
    event: InteractionEvent
    gap_to_next: Optional[timedelta] = None


@dataclass(frozen=True)
class Chain:
    participants: Tuple[str, str]
    links: Tuple[ChainLink, ...]

    @property
    def events(self) -> Tuple[InteractionEvent, ...]:
        return tuple(link.event for link in self.links)

    @property
    def depth(self) -> int:
        return len(self.links)

    @property
    def start(self) -> datetime:
        return self.links[0].event.timestamp

    @property
    def end(self) -> datetime:
        return self.links[-1].event.timestamp

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    @property
    def active_duration(self) -> float:
        return sum(measure_or_zero(link.event.measure) for link in self.links)

    @property
    def chain_id(self) -> str:
        payload = f"{self.participants[0]}|{self.participants[1]}|{self.start.isoformat()}|{self.depth}"
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:12]


def chain_candidates(
    events: Iterable[InteractionEvent],
    max_gap: Union[str, timedelta],
) -> List[List[InteractionEvent]]:
    """Partition timed events into runs split wherever the gap exceeds *max_gap*.

    Every timed event lands in exactly one run; no length filter is applied.
    A zero or negative *max_gap* raises ``ConfigurationError``.
    """
    max_gap = check_max_gap(max_gap)
    timed = [e for e in events if has_timestamp(e)]
    if not timed:
        return []
    df = frame_from_events(timed).sort_values("sent", kind="mergesort")
    gap = df["sent"].diff()
    new_run = gap.isna() | (gap > pd.Timedelta(max_gap))
    run_id = new_run.cumsum()
    return [[timed[p] for p in part["pos"]] for _, part in df.groupby(run_id, sort=True)]


def _to_chain(participants: Tuple[str, str], run: List[InteractionEvent]) -> Chain:
    links = []
    for current, following in zip(run, run[1:] + [None]):
        gap = None if following is None else pd.Timedelta(following.timestamp - current.timestamp).to_pytimedelta()
        links.append(ChainLink(event=current, gap_to_next=gap))
    return Chain(participants=participants, links=tuple(links))


def segment_pair(events: Iterable[InteractionEvent], config: EngineConfig = DEFAULT_CONFIG) -> List[Chain]:
    """Chains for one unordered pair of parties, oldest first.

    Non-dyadic and untimed events are ignored. Mixing more than one pair is
    a caller error.
    """
    dyadic = [e for e in events if event_pair(e) is not None]
    pairs = {event_pair(e) for e in dyadic}
    if len(pairs) > 1:
        raise ValueError(f"segment_pair expects a single pair of parties, got {len(pairs)}")
    if not pairs:
        return []
    participants = pairs.pop()
    runs = chain_candidates(dyadic, config.max_gap)
    return [_to_chain(participants, run) for run in runs if len(run) >= config.min_chain_length]


def find_chains(events: Iterable[InteractionEvent], config: EngineConfig = DEFAULT_CONFIG) -> List[Chain]:
    """Chains across a whole dataset, deepest first, then earliest."""
    chains: List[Chain] = []
    for pair_events in group_by(events, event_pair).values():
        chains.extend(segment_pair(pair_events, config))
    chains.sort(key=lambda c: (-c.depth, c.start, c.participants))
    logger.info("found %d chain(s) with max_gap=%s", len(chains), config.max_gap)
    return chains
