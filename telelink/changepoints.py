"""
Change-point history of a tracked attribute.

Typical use: which SIM (or IMEI) a device (or number) was seen with, and
when it switched. Every transition is kept, so A -> B -> A yields two
change points rather than a net diff.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .events import InteractionEvent, clean_value, frame_from_events, has_timestamp
from .grouping import Tally, group_by, tally, top_k

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangePoint:
    subject: str
    previous_value: Optional[str]
    new_value: str
    changed_at: datetime
    previous_value_first_seen: Optional[datetime]
    previous_value_last_seen: Optional[datetime]
    location_key: Optional[str] = None   # cell where the new value first showed up
    record_id: Optional[str] = None


def detect_change_points(events: Iterable[InteractionEvent]) -> List[ChangePoint]:
    """Ordered change points for a single subject's events."""
    valid = [
        e for e in events
        if has_timestamp(e) and clean_value(e.attribute_value) is not None
    ]
    if len(valid) < 2:
        return []
    df = frame_from_events(valid).sort_values("sent", kind="mergesort")
    df["value"] = [clean_value(v) for v in df["attribute_value"]]
    # a new run starts wherever the value differs from the previous row
    run_id = (df["value"] != df["value"].shift(1)).cumsum()
    runs = df.groupby(run_id, sort=True).agg(
        value=("value", "first"),
        opening_pos=("pos", "first"),
        closing_pos=("pos", "last"),
    )

    changes = []
    rows = list(runs.itertuples(index=False))
    for prev, curr in zip(rows, rows[1:]):
        opening = valid[curr.opening_pos]
        changes.append(ChangePoint(
            subject=opening.subject,
            previous_value=prev.value,
            new_value=curr.value,
            changed_at=opening.timestamp,
            previous_value_first_seen=valid[prev.opening_pos].timestamp,
            previous_value_last_seen=valid[prev.closing_pos].timestamp,
            location_key=opening.location_key,
            record_id=opening.record_id,
        ))
    return changes


def change_history(events: Iterable[InteractionEvent]) -> Dict[str, List[ChangePoint]]:
    """Change points per subject, most changes first; unchanged subjects omitted."""
    history = {}
    for subject, subject_events in group_by(events, lambda e: e.subject).items():
        points = detect_change_points(subject_events)
        if points:
            history[subject] = points
    ranked = sorted(history.items(), key=lambda item: -len(item[1]))
    logger.info("%d subject(s) changed attribute value", len(ranked))
    return dict(ranked)


def associated_values(events: Iterable[InteractionEvent]) -> List[Tuple[str, Tally]]:
    """Every attribute value seen with the events, busiest first."""
    return top_k(tally(events, lambda e: clean_value(e.attribute_value)))
