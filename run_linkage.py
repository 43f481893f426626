# ---
# jupyter:
#   jupytext:
#     cell_metadata_filter: title,-all
#     formats: ipynb,py:percent
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.17.2
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# %% [markdown]
# # Linkage run
#
# Loads the ingested Parquet partitions, converts them to interaction events
# and runs chains, change points, links and (optionally) a relocation diff for
# one subject. Parameters come from `TELELINK_*` environment variables.

# %%
"""
Linkage driver
--------------
Reads all Parquet partitions, builds InteractionEvents and prints the
derived chains, change points and link summaries.
"""

# %% [imports]
from __future__ import annotations
import logging
import sys
from pathlib import Path
import pandas as pd

from telelink import EngineConfig, build_report, detect_relocation, events_from_frame

# %% [paths]
RAW_PARQUET_DIR = Path("parquet")
TOP_ROWS: int = 10

# %% [loader]
def load_all_partitions(parquet_dir: Path = RAW_PARQUET_DIR) -> pd.DataFrame:
    """Load every Parquet file under *parquet_dir* into one DataFrame."""
    parts = sorted(parquet_dir.rglob("*.parquet"))
    if not parts:
        raise FileNotFoundError(f"No Parquet files found under {parquet_dir} – run the ingest step first.")
    return pd.concat((pd.read_parquet(p) for p in parts), ignore_index=True)

# %% [driver]
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = EngineConfig.from_env()
    events = events_from_frame(load_all_partitions())
    report = build_report(events, config)

    print(f"Events: {report.event_count}")
    print(f"Chains (max_gap={config.max_gap}, min_length={config.min_chain_length}): {len(report.chains)}")
    for chain in report.chains[:TOP_ROWS]:
        a, b = chain.participants
        print(f"  {chain.chain_id}  {a} <-> {b}  depth={chain.depth}  span={chain.span}  active={chain.active_duration:.0f}")

    print(f"Subjects with attribute changes: {len(report.change_history)}")
    for subject, points in list(report.change_history.items())[:TOP_ROWS]:
        trail = " -> ".join([points[0].previous_value] + [p.new_value for p in points])
        print(f"  {subject}: {trail}")

    print(f"Frequent pairs: {len(report.frequent_pairs)}")
    for link in report.frequent_pairs[:TOP_ROWS]:
        print(f"  {link.source} <-> {link.target}  count={link.count}  measure={link.total_measure:.0f}")

    if len(sys.argv) > 1:
        subject = sys.argv[1]
        diff = detect_relocation(events, subject, config)
        if not diff:
            print(f"Relocation for {subject}: no result ({diff.reason})")
        else:
            print(f"Relocation for {subject}: home={list(diff.home_locations)} -> {diff.new_location} at {diff.shift_timestamp}")
            print(f"  new contacts: {sorted(diff.new_contacts)}")
            print(f"  maintained:   {sorted(diff.maintained_contacts)}")
