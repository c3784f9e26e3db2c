import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .models import ExecutionResult, MigrationPlan

logger = logging.getLogger(__name__)

PLAN_COLUMNS = [
    "chunk", "position", "creator_id", "creator_name", "item_id", "title",
    "saved_timestamp", "source_collection_id", "source_collection_title",
]
COLLECTION_COLUMNS = ["name", "id", "planned_total"]
FAILURE_COLUMNS = [
    "collection_name", "item_id", "title", "creator_name",
    "source_collection_title", "reason",
]


def plan_frame(plan: MigrationPlan) -> pd.DataFrame:
    """One row per planned item, in the order it should appear in its folder."""
    rows: List[Dict[str, object]] = []
    for chunk_idx, chunk in enumerate(plan.chunks, start=1):
        for position, item in enumerate(chunk.display_order(), start=1):
            rows.append({
                "chunk": chunk_idx,
                "position": position,
                "creator_id": item.creator_id,
                "creator_name": item.creator_name,
                "item_id": item.id,
                "title": item.title,
                "saved_timestamp": item.saved_timestamp,
                "source_collection_id": item.source_collection_id,
                "source_collection_title": item.source_collection_title,
            })
    return pd.DataFrame(rows, columns=PLAN_COLUMNS)


def result_frames(result: ExecutionResult) -> Dict[str, pd.DataFrame]:
    collections = pd.DataFrame(
        [{"name": c.name, "id": c.id, "planned_total": c.planned_total}
         for c in result.created_collections],
        columns=COLLECTION_COLUMNS,
    )
    failures = pd.DataFrame(
        [{
            "collection_name": f.collection_name,
            "item_id": f.item.id,
            "title": f.item.title,
            "creator_name": f.item.creator_name,
            "source_collection_title": f.item.source_collection_title,
            "reason": f.reason,
        } for f in result.failures],
        columns=FAILURE_COLUMNS,
    )
    return {"collections": collections, "failures": failures}


def write_report(out_dir: Path,
                 plan: MigrationPlan,
                 result: Optional[ExecutionResult] = None) -> List[Path]:
    """
    Write ``plan.csv`` and, when a result is given, ``collections.csv`` and
    ``failures.csv`` into ``out_dir``. Returns the written paths.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    frames: Dict[str, pd.DataFrame] = {"plan": plan_frame(plan)}
    if result is not None:
        frames.update(result_frames(result))

    written: List[Path] = []
    for name, df in frames.items():
        path = out_dir / f"{name}.csv"
        df.to_csv(path, index=False, encoding="utf-8")
        written.append(path)
        logger.info("Wrote %d rows to %s", len(df), path)
    return written
