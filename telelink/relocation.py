"""
Dominant locations and before/after contact diffs around a relocation.

Home locations are the cells a subject is seen at most often. When the
subject turns up somewhere new, the counterparts reached from home before
the move are compared with those reached at the new cell afterwards: the
shift moment itself belongs to the new location.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

import pandas as pd

from .config import DEFAULT_CONFIG, EngineConfig, check_positive_int
from .errors import InsufficientData
from .events import InteractionEvent, clean_value, frame_from_events, sort_by_time
from .grouping import tally

logger = logging.getLogger(__name__)

MIN_LOCATION_EVENTS: int = 2


@dataclass(frozen=True)
class LocationRank:
    location_key: str
    count: int
    label: Optional[str] = None
    first_seen: Optional[datetime] = None


@dataclass(frozen=True)
class ContactDetail:
    counterpart: str
    count: int
    total_measure: float
    first_contact: Optional[datetime]
    last_contact: Optional[datetime]


@dataclass(frozen=True)
class RelocationDiff:
    subject: str
    home_locations: Tuple[str, ...]
    new_location: str
    shift_timestamp: datetime
    home_contacts: FrozenSet[str]
    new_contacts: FrozenSet[str]
    maintained_contacts: FrozenSet[str]
    contact_details: Tuple[ContactDetail, ...] = ()


def _located(events: Iterable[InteractionEvent]) -> List[InteractionEvent]:
    return [e for e in events if clean_value(e.location_key) is not None]


def dominant_locations(
    events: Iterable[InteractionEvent],
    top_n: int = DEFAULT_CONFIG.top_n_home_locations,
) -> Union[List[LocationRank], InsufficientData]:
    """Most frequent location keys, ties kept in order of first appearance.

    *top_n* below 1 raises ``ConfigurationError``.
    """
    check_positive_int("top_n", top_n)
    located = _located(events)
    if len(located) < MIN_LOCATION_EVENTS:
        return InsufficientData("fewer than 2 location-bearing events", MIN_LOCATION_EVENTS, len(located))
    df = frame_from_events(located)
    df["location_key"] = [clean_value(v) for v in df["location_key"]]
    df["location_label"] = [clean_value(v) for v in df["location_label"]]
    # sort=False keeps first-occurrence order, mergesort keeps it through ties
    grouped = df.groupby("location_key", sort=False)
    ranks = pd.DataFrame({
        "count": grouped.size(),
        "label": grouped["location_label"].first(),
    }).sort_values("count", ascending=False, kind="mergesort")
    bounds = tally(located, lambda e: clean_value(e.location_key))
    return [
        LocationRank(
            location_key=key,
            count=int(row["count"]),
            label=None if pd.isna(row["label"]) else row["label"],
            first_seen=bounds[key].first_seen,
        )
        for key, row in ranks.head(top_n).iterrows()
    ]


def suggest_new_locations(
    events: Iterable[InteractionEvent],
    subject: str,
) -> Union[List[LocationRank], InsufficientData]:
    """Locations first reached after the subject's last sighting at home.

    Home is the single most frequent location; candidates are ranked by
    activity, each carrying its first-seen time as the shift moment.
    """
    own = sort_by_time(e for e in _located(events) if e.subject == subject)
    home = dominant_locations(own, top_n=1)
    if not home:
        return home
    home_key = home[0].location_key
    last_at_home = max(e.timestamp for e in own if clean_value(e.location_key) == home_key)
    after = [
        e for e in own
        if clean_value(e.location_key) != home_key and e.timestamp > last_at_home
    ]
    counts = tally(after, lambda e: clean_value(e.location_key))
    labels = {}
    for e in after:
        key = clean_value(e.location_key)
        if labels.get(key) is None:
            labels[key] = clean_value(e.location_label)
    suggestions = [
        LocationRank(location_key=key, count=t.count, label=labels.get(key), first_seen=t.first_seen)
        for key, t in counts.items()
    ]
    suggestions.sort(key=lambda s: -s.count)
    return suggestions


def relocation_diff(
    events: Iterable[InteractionEvent],
    subject: str,
    new_location: str,
    shift_timestamp: datetime,
    config: EngineConfig = DEFAULT_CONFIG,
    new_contacts_since: Optional[datetime] = None,
) -> Union[RelocationDiff, InsufficientData]:
    """Split the subject's counterparts into new and maintained contacts.

    With *new_contacts_since*, new contacts whose first contact at the new
    location falls before that instant are left out of ``new_contacts`` and
    of the details; maintained contacts are unaffected.
    """
    own = sort_by_time(e for e in events if e.subject == subject)
    before = [e for e in own if e.timestamp < shift_timestamp]
    home = dominant_locations(before, top_n=config.top_n_home_locations)
    if not home:
        logger.debug("no home location for %s before %s: %s", subject, shift_timestamp, home.reason)
        return home
    home_keys = tuple(rank.location_key for rank in home)

    home_contacts = frozenset(
        e.counterpart for e in before
        if e.counterpart is not None and clean_value(e.location_key) in home_keys
    )
    at_new = [
        e for e in own
        if e.counterpart is not None
        and clean_value(e.location_key) == new_location
        and e.timestamp >= shift_timestamp
    ]
    details = [
        ContactDetail(counterpart=c, count=t.count, total_measure=t.total,
                      first_contact=t.first_seen, last_contact=t.last_seen)
        for c, t in tally(at_new, lambda e: e.counterpart).items()
    ]
    seen_at_new = frozenset(d.counterpart for d in details)
    new_contacts = seen_at_new - home_contacts
    if new_contacts_since is not None:
        earlier = frozenset(
            d.counterpart for d in details
            if d.counterpart in new_contacts and d.first_contact < new_contacts_since
        )
        new_contacts -= earlier
        details = [d for d in details if d.counterpart not in earlier]
    details.sort(key=lambda d: -d.count)
    return RelocationDiff(
        subject=subject,
        home_locations=home_keys,
        new_location=new_location,
        shift_timestamp=shift_timestamp,
        home_contacts=home_contacts,
        new_contacts=new_contacts,
        maintained_contacts=seen_at_new & home_contacts,
        contact_details=tuple(details),
    )


def detect_relocation(
    events: Iterable[InteractionEvent],
    subject: str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Union[RelocationDiff, InsufficientData]:
    """Diff against the busiest location reached after leaving home."""
    events = list(events)
    suggestions = suggest_new_locations(events, subject)
    if not suggestions:
        if isinstance(suggestions, InsufficientData):
            return suggestions
        return InsufficientData("no location seen after the last sighting at home")
    top = suggestions[0]
    return relocation_diff(events, subject, top.location_key, top.first_seen, config)
