"""
Batch Engine - Bounded-concurrency batching and fixed-delay retries
Every pipeline stage walks its work list through here: fixed-size slices,
each slice fully finished before the next one starts.
"""
import argparse
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from rich.console import Console
from tenacity import Retrying, RetryCallState, stop_after_attempt, wait_fixed

console = Console()

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchOutcome(Generic[T]):
    """Result of running the worker on one item"""
    item: T
    ok: bool
    result: Any = None
    error: Optional[str] = None


def _run_one(worker: Callable[[T], Any], item: T) -> BatchOutcome:
    try:
        return BatchOutcome(item=item, ok=True, result=worker(item))
    except Exception as e:
        return BatchOutcome(item=item, ok=False, error=str(e))


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Any],
    batch_size: int,
    label: str = "items",
) -> List[BatchOutcome]:
    """
    Process items in consecutive slices of ``batch_size``.

    Args:
        items: Work items, processed in order
        worker: Called once per item on a pool thread
        batch_size: Slice size, also the max number of threads
        label: Noun used in the progress line

    Returns:
        One BatchOutcome per item, in input order
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    items = list(items)
    total = len(items)
    outcomes: List[BatchOutcome] = []
    if not total:
        return outcomes

    with ThreadPoolExecutor(max_workers=batch_size) as executor:
        for i in range(0, total, batch_size):
            batch = items[i:i + batch_size]
            futures = [executor.submit(_run_one, worker, item) for item in batch]
            # Wait for the whole slice before moving on
            outcomes.extend(f.result() for f in futures)

            progress = min(i + batch_size, total)
            console.print(f"\n[dim]--- Progress: {progress}/{total} {label} processed ---[/dim]")

    return outcomes


def retry_call(
    fn: Callable[[], R],
    max_retries: int,
    delay: float,
    on_retry: Optional[Callable[[int, int, BaseException], None]] = None,
) -> R:
    """
    Call ``fn`` with up to ``max_retries`` extra attempts, ``delay`` seconds apart.
    The last exception propagates once attempts run out.
    """
    def before_sleep(state: RetryCallState):
        if on_retry is not None:
            on_retry(state.attempt_number, max_retries, state.outcome.exception())

    retrying = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_fixed(delay),
        before_sleep=before_sleep,
        reraise=True,
    )
    return retrying(fn)


def positive_int(value: str) -> int:
    """argparse type for batch sizes"""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number
