"""
Link aggregation: weighted directional summaries between parties.

Events become a MultiDiGraph (one edge per event), which is collapsed into
a DiGraph carrying per-direction counts, summed measure, the kinds seen and
first/last timestamps. Pair, node and frequent-contact summaries are all
read off that collapsed graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

import networkx as nx

from .config import DEFAULT_CONFIG, EngineConfig
from .events import InteractionEvent, edge_direction, has_timestamp, measure_or_zero, pair_key

logger = logging.getLogger(__name__)

SENTINEL_NODE: str = "SYSTEM"   # stands in for an external/system counterpart
OWNER_SAMPLE: int = 20


@dataclass(frozen=True)
class LinkSummary:
    source: str
    target: str
    count: int
    total_measure: float
    net_measure: float          # source -> target minus target -> source
    distinct_kinds: FrozenSet[str]
    first_seen: Optional[datetime]
    last_seen: Optional[datetime]
    directed: bool = True


@dataclass(frozen=True)
class NodeSummary:
    node: str
    transaction_count: int
    total_sent: float
    total_received: float

    @property
    def net_measure(self) -> float:
        return self.total_received - self.total_sent


@dataclass(frozen=True)
class ContactSummary:
    """One counterpart of an owner, as seen from the owner's side."""
    counterpart: str
    sent_count: int
    sent_measure: float
    received_count: int
    received_measure: float
    first_interaction: Optional[datetime]
    last_interaction: Optional[datetime]

    @property
    def total_interactions(self) -> int:
        return self.sent_count + self.received_count

    @property
    def total_measure(self) -> float:
        return self.sent_measure + self.received_measure


def is_sentinel(node: Optional[str]) -> bool:
    return node is not None and node.strip().upper() == SENTINEL_NODE


# %% [graph builders]
def build_event_graph(
    events: Iterable[InteractionEvent],
    missing_counterpart: Optional[str] = None,
) -> nx.MultiDiGraph:
    """One directed edge per dyadic event, keyed by input position.

    Events without a counterpart are skipped unless *missing_counterpart*
    names a node (normally ``SENTINEL_NODE``) to attribute them to.
    """
    G = nx.MultiDiGraph()
    skipped = 0
    for pos, event in enumerate(events):
        if event.counterpart is None and missing_counterpart is not None:
            event_for_edge = replace(event, counterpart=missing_counterpart)
        else:
            event_for_edge = event
        src, dst = edge_direction(event_for_edge)
        if src is None or dst is None:
            skipped += 1
            continue
        G.add_edge(
            src, dst, key=pos,
            measure=measure_or_zero(event.measure),
            kind=event.kind,
            sent=event.timestamp if has_timestamp(event) else None,
        )
    if skipped:
        logger.debug("skipped %d non-dyadic event(s)", skipped)
    return G


def collapse_links(mg: nx.MultiDiGraph) -> nx.DiGraph:
    """Fold parallel edges into one accumulator per direction."""
    cg = nx.DiGraph()
    cg.add_nodes_from(mg.nodes)
    for u, v, data in mg.edges(data=True):
        if cg.has_edge(u, v):
            edge_data = cg[u][v]
        else:
            cg.add_edge(u, v, count=0, total_measure=0.0, kinds=set(), first_seen=None, last_seen=None)
            edge_data = cg[u][v]
        edge_data["count"] += 1
        edge_data["total_measure"] += data["measure"]
        if data["kind"]:
            edge_data["kinds"].add(data["kind"])
        ts = data["sent"]
        if ts is not None:
            if edge_data["first_seen"] is None or ts < edge_data["first_seen"]:
                edge_data["first_seen"] = ts
            if edge_data["last_seen"] is None or ts > edge_data["last_seen"]:
                edge_data["last_seen"] = ts
    return cg


def link_graph(events: Iterable[InteractionEvent], missing_counterpart: Optional[str] = None) -> nx.DiGraph:
    return collapse_links(build_event_graph(events, missing_counterpart))


# %% [summaries]
def _earliest(*values):
    values = [v for v in values if v is not None]
    return min(values) if values else None


def _latest(*values):
    values = [v for v in values if v is not None]
    return max(values) if values else None


def link_summaries(
    events: Iterable[InteractionEvent],
    directed: bool = True,
    missing_counterpart: Optional[str] = None,
) -> List[LinkSummary]:
    """Per-direction (or per-pair) summaries, busiest first."""
    cg = link_graph(events, missing_counterpart)
    summaries = []
    if directed:
        for u, v, d in cg.edges(data=True):
            summaries.append(LinkSummary(
                source=u, target=v, count=d["count"],
                total_measure=d["total_measure"], net_measure=d["total_measure"],
                distinct_kinds=frozenset(d["kinds"]),
                first_seen=d["first_seen"], last_seen=d["last_seen"],
            ))
    else:
        seen = set()
        for u, v in cg.edges:
            a, b = pair_key(u, v)
            if (a, b) in seen:
                continue
            seen.add((a, b))
            fwd = cg.get_edge_data(a, b, default=None)
            back = cg.get_edge_data(b, a, default=None) if a != b else None
            parts = [d for d in (fwd, back) if d is not None]
            fwd_measure = fwd["total_measure"] if fwd else 0.0
            back_measure = back["total_measure"] if back else 0.0
            summaries.append(LinkSummary(
                source=a, target=b,
                count=sum(d["count"] for d in parts),
                total_measure=fwd_measure + back_measure,
                net_measure=fwd_measure - back_measure,
                distinct_kinds=frozenset().union(*(d["kinds"] for d in parts)),
                first_seen=_earliest(*(d["first_seen"] for d in parts)),
                last_seen=_latest(*(d["last_seen"] for d in parts)),
                directed=False,
            ))
    summaries.sort(key=lambda s: (-s.count, -s.total_measure, s.source, s.target))
    return summaries


def node_summaries(events: Iterable[InteractionEvent], missing_counterpart: Optional[str] = None) -> List[NodeSummary]:
    """Totals per party, summed over every edge touching it."""
    cg = link_graph(events, missing_counterpart)
    nodes = []
    for n in cg.nodes:
        out_edges = [d for _, _, d in cg.out_edges(n, data=True)]
        in_edges = [d for _, _, d in cg.in_edges(n, data=True)]
        nodes.append(NodeSummary(
            node=n,
            transaction_count=sum(d["count"] for d in out_edges) + sum(d["count"] for d in in_edges),
            total_sent=sum(d["total_measure"] for d in out_edges),
            total_received=sum(d["total_measure"] for d in in_edges),
        ))
    nodes.sort(key=lambda s: (-s.transaction_count, s.node))
    return nodes


def frequent_pairs(events: Iterable[InteractionEvent], config: EngineConfig = DEFAULT_CONFIG) -> List[LinkSummary]:
    """Undirected pair totals with at least the configured number of interactions."""
    return [
        s for s in link_summaries(events, directed=False)
        if s.count >= config.frequent_contact_min_interactions
    ]


def frequent_contacts(
    events: Iterable[InteractionEvent],
    owner: str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> List[ContactSummary]:
    """Counterparts of *owner* split into sent and received, busiest first."""
    cg = link_graph(events)
    if owner not in cg:
        return []
    contacts: Dict[str, ContactSummary] = {}
    for nbr in set(cg.successors(owner)) | set(cg.predecessors(owner)):
        if nbr == owner:
            continue
        out_d = cg.get_edge_data(owner, nbr, default={})
        in_d = cg.get_edge_data(nbr, owner, default={})
        contacts[nbr] = ContactSummary(
            counterpart=nbr,
            sent_count=out_d.get("count", 0),
            sent_measure=out_d.get("total_measure", 0.0),
            received_count=in_d.get("count", 0),
            received_measure=in_d.get("total_measure", 0.0),
            first_interaction=_earliest(out_d.get("first_seen"), in_d.get("first_seen")),
            last_interaction=_latest(out_d.get("last_seen"), in_d.get("last_seen")),
        )
    ranked = [c for c in contacts.values() if c.total_interactions >= config.frequent_contact_min_interactions]
    ranked.sort(key=lambda c: (-c.total_interactions, -c.total_measure, c.counterpart))
    return ranked


def infer_statement_owner(events: Iterable[InteractionEvent], sample: int = OWNER_SAMPLE) -> Optional[str]:
    """Most frequent identifier among the first *sample* events; ties go to the first seen."""
    seen: Dict[str, int] = {}
    for i, event in enumerate(events):
        if i >= sample:
            break
        for party in (event.subject, event.counterpart):
            if party:
                seen[party] = seen.get(party, 0) + 1
    if not seen:
        return None
    return max(seen, key=seen.get)

