"""Comparison orchestration.

Runs structural reconciliation, then diffs every matched sheet pair
concurrently. Each diff is pure and works on its own inputs, so sheets are
dispatched to worker threads independently and reassembled in the old
document's sheet order.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from sheetdiff.diff import diff_sheets
from sheetdiff.models import ComparisonResult, DiffReport, Document
from sheetdiff.reconcile import reconcile

DEFAULT_MAX_WORKERS = 8


async def compare_documents(
    old: Document,
    new: Document,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: float = 0.0,
) -> ComparisonResult:
    """Compare two documents.

    Args:
        old: Baseline document
        new: Document compared against the baseline
        max_workers: Maximum number of sheets diffed at the same time
        timeout: Per-sheet diff deadline in seconds (0 = none)

    Returns:
        ComparisonResult with one DiffReport per matched sheet, in the
        old document's sheet order

    Cancelling the caller cancels every pending diff; a partial result is
    never returned.
    """
    report = reconcile(old, new)
    pairs = report.matched_pairs()

    logger.info(
        f"Comparing {old.document_id} and {new.document_id}: "
        f"{len(pairs)} matched sheet(s), same_set={report.same_set}, "
        f"same_order={report.same_order}"
    )

    semaphore = asyncio.Semaphore(max(1, max_workers))

    async def run_one(old_index: int, new_index: int) -> DiffReport:
        async with semaphore:
            return await asyncio.to_thread(
                diff_sheets,
                old.sheets[old_index],
                new.sheets[new_index],
                timeout=timeout,
            )

    tasks = [asyncio.create_task(run_one(o, n)) for o, n in pairs]
    try:
        # gather preserves argument order, so completion order is irrelevant
        diffs = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    return ComparisonResult(
        old_id=old.document_id,
        new_id=new.document_id,
        reconciliation=report,
        diffs=tuple(diffs),
    )


def compare_documents_sync(
    old: Document,
    new: Document,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout: float = 0.0,
) -> ComparisonResult:
    """Blocking wrapper around compare_documents for callers without a loop."""
    return asyncio.run(
        compare_documents(old, new, max_workers=max_workers, timeout=timeout)
    )
