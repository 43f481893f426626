# tests/conftest.py
"""
Pytest fixtures.

Events are built relative to a fixed base time so expected timestamps can
be written as minute offsets.
"""

from datetime import datetime, timedelta

import pytest

from telelink.events import InteractionEvent

T0 = datetime(2024, 3, 1, 8, 0, 0)


def at(minutes: float) -> datetime:
    return T0 + timedelta(minutes=minutes)


def ev(subject="A", counterpart="B", minutes=0, **fields) -> InteractionEvent:
    """Event at T0 + *minutes*; ``minutes=None`` gives an untimed event."""
    timestamp = None if minutes is None else at(minutes)
    return InteractionEvent(subject=subject, counterpart=counterpart, timestamp=timestamp, **fields)


@pytest.fixture
def relocation_events():
    """Subject S: four cells before t=100, then a move to N1.

    H1 is the busiest cell overall (5 events against N1's 4) and S is last
    seen there at t=15.
    """
    return [
        ev("S", "C1", 0, location_key="H1"),
        ev("S", "C2", 5, location_key="H1"),
        ev("S", "C2", 10, location_key="H1", location_label="Market Rd"),
        ev("S", "C1", 12, location_key="H1"),
        ev("S", "C1", 15, location_key="H1", location_label="Station Sq"),
        ev("S", "C3", 20, location_key="H2"),
        ev("S", "C4", 30, location_key="H3"),
        ev("S", "C5", 40, location_key="H4"),
        ev("S", "C1", 100, location_key="N1", measure=60),
        ev("S", "C6", 110, location_key="N1", measure=30),
        ev("S", "C5", 120, location_key="N1", measure=10),
        ev("S", "C6", 130, location_key="N1", measure=45),
        ev("X", "C9", 50, location_key="H1"),
    ]


@pytest.fixture
def mfs_events():
    """Small statement: A sends to B and C, receives from B, pays the system."""
    return [
        ev("A", "B", 0, measure=10, kind="call"),
        ev("B", "A", 5, measure=5, kind="sms"),
        ev("A", "B", 10, measure=20, kind="call"),
        ev("A", "C", 20, measure=1, kind="call"),
        ev("A", "SYSTEM", 30, measure=100, kind="cash_out"),
        ev("A", None, 40, measure=7, kind="recharge"),
    ]
