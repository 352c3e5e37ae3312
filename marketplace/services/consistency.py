"""
Paired write execution for denormalized references across collections.

A paired mutation is an ordered list of single-document writes. There is no
transaction: a failure partway through leaves the earlier writes in place and is
reported as a partial failure so callers can reconcile.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
import logging

from marketplace.utils.exceptions import StoreError

logger = logging.getLogger(__name__)


@dataclass
class WriteStep:
    """One single-document write of a paired mutation."""

    name: str
    operation: Callable[[], Awaitable[object]]
    failure_message: str


@dataclass
class PairedWriteResult:
    """Outcome of a paired mutation."""

    completed: List[str] = field(default_factory=list)
    failed: List[Tuple[WriteStep, StoreError]] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)

    @property
    def warning(self) -> Optional[str]:
        """Message of the last failed step, None when every step succeeded."""
        if not self.failed:
            return None
        step, error = self.failed[-1]
        return f"{step.failure_message}: {error.detail}"


def _with_context(step: WriteStep, error: StoreError) -> StoreError:
    contextual = type(error)(f"{step.failure_message}: {error.detail}")
    contextual.__cause__ = error
    return contextual


async def run_paired_writes(
    steps: Sequence[WriteStep],
    stop_on_failure: bool = True
) -> PairedWriteResult:
    """
    Execute ``steps`` in order.

    Args:
        steps: Ordered writes; the first one is the primary write
        stop_on_failure: Stop at the first failed write instead of attempting the rest

    Returns:
        PairedWriteResult; a non-empty ``failed`` list means a partial failure

    Raises:
        StoreError: If no step succeeded (the last error observed, with step context)
    """
    result = PairedWriteResult()

    for index, step in enumerate(steps):
        try:
            await step.operation()
        except StoreError as e:
            logger.warning(f"Paired write step '{step.name}' failed: {e.detail}")
            result.failed.append((step, e))
            if stop_on_failure:
                result.skipped = [remaining.name for remaining in steps[index + 1:]]
                break
            continue
        result.completed.append(step.name)

    if result.failed and not result.completed:
        step, error = result.failed[-1]
        raise _with_context(step, error)

    if result.is_partial:
        logger.warning(
            f"Partial write: completed={result.completed} "
            f"failed={[step.name for step, _ in result.failed]} skipped={result.skipped}"
        )

    return result
