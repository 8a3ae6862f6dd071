"""
Collects split outcomes in completion order and returns them in split order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from foldfit.data.splitters import ResampleSplit
from foldfit.resampling.unit import SplitOutcome

logger = logging.getLogger(__name__)


class ResultAccumulator:
    """Ordered store of split outcomes keyed by split id.

    Outcomes may arrive in any order (parallel workers finish when they
    finish); ``outcomes()`` always returns them in the order of ``splits``.
    """

    def __init__(self, splits: Sequence[ResampleSplit], verbose: bool = False):
        self._order: Dict[str, int] = {s.id: i for i, s in enumerate(splits)}
        self._outcomes: Dict[str, SplitOutcome] = {}
        self._progress: Optional[tqdm] = None
        if verbose:
            self._progress = tqdm(total=len(self._order), desc="Resamples", leave=False)

    def __len__(self) -> int:
        return len(self._outcomes)

    @property
    def complete(self) -> bool:
        return len(self._outcomes) == len(self._order)

    def add(self, outcome: SplitOutcome) -> None:
        """Store one outcome.

        Raises:
            RuntimeError: If the id is unknown or was already stored.
        """
        if outcome.id not in self._order:
            raise RuntimeError(f"Outcome for unknown split {outcome.id!r}")
        if outcome.id in self._outcomes:
            raise RuntimeError(f"Duplicate outcome for split {outcome.id!r}")

        self._outcomes[outcome.id] = outcome
        logger.debug("Collected %s (%d/%d)", outcome.id, len(self), len(self._order))

        if self._progress is not None:
            n_errors = sum(note.kind == "error" for note in outcome.notes)
            n_warnings = sum(note.kind == "warning" for note in outcome.notes)
            status = "ok" if outcome.succeeded else "FAILED"
            tqdm.write(
                f"  {outcome.id}: {status} "
                f"({n_errors} error(s), {n_warnings} warning(s))"
            )
            self._progress.update(1)

    def close(self) -> None:
        """Close the progress bar, if any. Safe to call more than once."""
        if self._progress is not None:
            self._progress.close()
            self._progress = None

    def outcomes(self) -> List[SplitOutcome]:
        """All outcomes in split order.

        Raises:
            RuntimeError: If any split has no outcome yet.
        """
        self.close()

        missing = [split_id for split_id in self._order if split_id not in self._outcomes]
        if missing:
            raise RuntimeError(f"No outcome collected for splits: {missing}")
        return sorted(self._outcomes.values(), key=lambda o: self._order[o.id])
