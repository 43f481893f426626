"""
Canonical interaction record and the helpers every engine shares.

An :class:`InteractionEvent` is one dyadic (or location-only) record: a
subject acted toward a counterpart at a time, optionally with a measure
(seconds, bytes, currency). Ingestion hands these over already typed; a
missing or unparsable timestamp or measure arrives as ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

OUTGOING: str = "out"
INCOMING: str = "in"
NULL_MARKERS = frozenset({"", "n/a", "na", "none", "null"})

# event field -> default source column, as written by the ingest step
DEFAULT_COLUMNS: Dict[str, str] = {
    "subject": "src",
    "counterpart": "dst",
    "timestamp": "sent",
    "measure": "duration",
    "kind": "channel",
}
OPTIONAL_COLUMNS = (
    "attribute_value", "location_key", "location_label", "direction", "record_id", "lac", "cell",
)


@dataclass(frozen=True)
class InteractionEvent:
    subject: str
    counterpart: Optional[str] = None
    timestamp: Optional[datetime] = None
    measure: Optional[float] = 0.0
    attribute_value: Optional[str] = None
    location_key: Optional[str] = None
    kind: Optional[str] = None
    location_label: Optional[str] = None
    direction: Optional[str] = None      # OUTGOING (default) or INCOMING
    record_id: Optional[str] = None


# %% [field helpers]
def has_timestamp(event: InteractionEvent) -> bool:
    return event.timestamp is not None and not pd.isna(event.timestamp)


def measure_or_zero(value) -> float:
    """NaN, ``None`` and non-numeric measures count as zero."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if np.isfinite(value) else 0.0


def clean_value(value) -> Optional[str]:
    """Strip a string field; blanks and "n/a"-style markers become ``None``."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return None if text.lower() in NULL_MARKERS else text


def location_key(area, cell) -> Optional[str]:
    """``"<area>-<cell>"`` or ``None`` when either half is missing."""
    area, cell = clean_value(area), clean_value(cell)
    if area is None or cell is None:
        return None
    return f"{area}-{cell}"


def pair_key(a: str, b: str) -> Tuple[str, str]:
    """Order-independent key for the pair {a, b}."""
    return (a, b) if a <= b else (b, a)


def event_pair(event: InteractionEvent) -> Optional[Tuple[str, str]]:
    if event.counterpart is None:
        return None
    return pair_key(event.subject, event.counterpart)


def edge_direction(event: InteractionEvent) -> Tuple[str, Optional[str]]:
    """(source, target) of the event; INCOMING flips subject and counterpart."""
    if event.direction == INCOMING:
        return event.counterpart, event.subject
    return event.subject, event.counterpart


def sort_by_time(events: Iterable[InteractionEvent]) -> List[InteractionEvent]:
    """Timed events in ascending order; equal timestamps keep input order."""
    events = list(events)
    timed = [e for e in events if has_timestamp(e)]
    dropped = len(events) - len(timed)
    if dropped:
        logger.debug("dropped %d event(s) without a usable timestamp", dropped)
    return sorted(timed, key=lambda e: e.timestamp)


# %% [frame adapters]
def frame_from_events(events: Iterable[InteractionEvent]) -> pd.DataFrame:
    """One row per event, ``pos`` = position in the input sequence.

    Timestamps carrying a UTC offset are converted to UTC in ``sent``; map
    rows back through ``pos`` to recover the caller's own values.
    """
    events = list(events)
    rows = [
        {
            "pos": i,
            "subject": e.subject,
            "counterpart": e.counterpart,
            "sent": e.timestamp,
            "measure": measure_or_zero(e.measure),
            "attribute_value": e.attribute_value,
            "location_key": e.location_key,
            "location_label": e.location_label,
            "kind": e.kind,
        }
        for i, e in enumerate(events)
    ]
    df = pd.DataFrame(rows, columns=[
        "pos", "subject", "counterpart", "sent", "measure",
        "attribute_value", "location_key", "location_label", "kind",
    ])
    # aware instants at mixed offsets only order correctly once in UTC
    aware = any(has_timestamp(e) and e.timestamp.tzinfo is not None for e in events)
    df["sent"] = pd.to_datetime(df["sent"], utc=aware)
    return df


def events_from_frame(df: pd.DataFrame, columns: Optional[Mapping[str, str]] = None) -> List[InteractionEvent]:
    """Convert an ingested DataFrame into events.

    *columns* maps event fields (plus ``lac``/``cell``, which are combined
    into ``location_key``) to column names and is merged over
    ``DEFAULT_COLUMNS``. Unknown field names raise ``ValueError``; columns
    absent from *df* leave the field unset.
    """
    mapping = dict(DEFAULT_COLUMNS)
    if columns:
        unknown = set(columns) - set(DEFAULT_COLUMNS) - set(OPTIONAL_COLUMNS)
        if unknown:
            raise ValueError(f"unknown event field(s) in column mapping: {sorted(unknown)}")
        mapping.update(columns)
    present = {name: col for name, col in mapping.items() if col in df.columns}
    if "subject" not in present:
        raise ValueError(f"subject column {mapping['subject']!r} not found")

    data = pd.DataFrame(index=df.index)
    for name, col in present.items():
        data[name] = df[col]
    if "timestamp" in data:
        data["timestamp"] = pd.to_datetime(data["timestamp"], errors="coerce")
    if "measure" in data:
        data["measure"] = pd.to_numeric(data["measure"], errors="coerce")
    if "location_key" not in data and {"lac", "cell"} <= set(data.columns):
        data["location_key"] = [location_key(a, c) for a, c in zip(data["lac"], data["cell"])]

    events = []
    for row in data.to_dict("records"):
        subject = clean_value(row.get("subject"))
        if subject is None:
            continue
        ts = row.get("timestamp")
        measure = row.get("measure", 0.0)
        events.append(InteractionEvent(
            subject=subject,
            counterpart=clean_value(row.get("counterpart")),
            timestamp=None if ts is None or pd.isna(ts) else ts.to_pydatetime(),
            measure=None if measure is None or pd.isna(measure) else float(measure),
            attribute_value=clean_value(row.get("attribute_value")),
            location_key=clean_value(row.get("location_key")),
            kind=clean_value(row.get("kind")),
            location_label=clean_value(row.get("location_label")),
            direction=_normalise_direction(row.get("direction")),
            record_id=clean_value(row.get("record_id")),
        ))
    logger.info("converted %d of %d rows into events", len(events), len(df))
    return events


def _normalise_direction(value) -> Optional[str]:
    text = clean_value(value)
    if text is None:
        return None
    text = text.lower()
    if text in ("in", "incoming", "credit", "mtc", "sms_mt"):
        return INCOMING
    if text in ("out", "outgoing", "debit", "moc", "sms_mo"):
        return OUTGOING
    return None
