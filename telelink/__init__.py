"""Temporal event aggregation and linkage for telecom/MFS record analysis."""

from .chains import Chain, ChainLink, chain_candidates, find_chains, segment_pair
from .changepoints import ChangePoint, associated_values, change_history, detect_change_points
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import ConfigurationError, InsufficientData, TelelinkError
from .events import InteractionEvent, events_from_frame, sort_by_time
from .grouping import Tally, group_by, tally, top_k
from .links import (
    SENTINEL_NODE,
    ContactSummary,
    LinkSummary,
    NodeSummary,
    frequent_contacts,
    frequent_pairs,
    infer_statement_owner,
    is_sentinel,
    link_summaries,
    node_summaries,
)
from .relocation import (
    LocationRank,
    RelocationDiff,
    detect_relocation,
    dominant_locations,
    relocation_diff,
    suggest_new_locations,
)
from .report import LinkageReport, build_report

__version__ = "0.1.0"
