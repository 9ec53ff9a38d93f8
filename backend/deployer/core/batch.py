"""Best-effort application of an object-store action over a key stream."""

import logging
from dataclasses import dataclass, field
from typing import AsyncIterable, Awaitable, Callable, List, Tuple

from deployer.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class BatchOutcome:
    """Success count plus the (key, error) pairs that failed."""
    succeeded: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def failed_keys(self) -> List[str]:
        return [key for key, _ in self.failures]


async def apply_best_effort(
    keys: AsyncIterable[str],
    action: Callable[[str], Awaitable[None]],
    label: str,
) -> BatchOutcome:
    """
    Run ``action`` on every key, recording per-key storage failures.

    One failing key never stops the batch. Errors raised by the key stream
    itself (a failed listing) propagate.
    """
    outcome = BatchOutcome()
    async for key in keys:
        try:
            await action(key)
        except StorageError as e:
            logger.warning(f"{label} failed for {key}: {e}")
            outcome.failures.append((key, str(e)))
            continue
        outcome.succeeded += 1
    return outcome
