"""One-shot bundle of the dataset-wide engines for a single query."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .chains import Chain, find_chains
from .changepoints import ChangePoint, change_history
from .config import DEFAULT_CONFIG, EngineConfig
from .events import InteractionEvent
from .links import LinkSummary, NodeSummary, frequent_pairs, link_summaries, node_summaries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkageReport:
    chains: Tuple[Chain, ...]
    change_history: Dict[str, List[ChangePoint]]
    links: Tuple[LinkSummary, ...]
    nodes: Tuple[NodeSummary, ...]
    frequent_pairs: Tuple[LinkSummary, ...]
    event_count: int


def build_report(events: Iterable[InteractionEvent], config: EngineConfig = DEFAULT_CONFIG) -> LinkageReport:
    """Run every dataset-wide engine over the same event slice.

    Relocation analysis needs a chosen subject and is left to
    :func:`telelink.relocation.detect_relocation`.
    """
    events = list(events)
    report = LinkageReport(
        chains=tuple(find_chains(events, config)),
        change_history=change_history(events),
        links=tuple(link_summaries(events)),
        nodes=tuple(node_summaries(events)),
        frequent_pairs=tuple(frequent_pairs(events, config)),
        event_count=len(events),
    )
    logger.info(
        "report over %d events: %d chains, %d links, %d changed subjects",
        report.event_count, len(report.chains), len(report.links), len(report.change_history),
    )
    return report
