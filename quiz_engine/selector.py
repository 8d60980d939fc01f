"""
Question selection for a new session.

The selector works purely in canonical indices so that persistence can store
exactly what was selected, with no lookup back from question text.
"""

import logging
import random
from typing import Iterable, List, Optional

from quiz_engine.editions import FOCUSED_MAX_QUESTIONS, Edition
from quiz_engine.errors import QuestionBankEmpty, SelectionExhausted
from quiz_engine.models import StudyMode
from quiz_engine.progress import ProgressRecord

logger = logging.getLogger(__name__)


class QuestionSelector:
    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def shuffled(self, indices: Iterable[int]) -> List[int]:
        # Sorted first so a seeded rng gives the same order regardless of set iteration order.
        items = sorted(indices)
        self._rng.shuffle(items)
        return items

    def select(
        self,
        edition: Edition,
        study_mode: StudyMode,
        progress: ProgressRecord,
        canonical_size: int,
        needed: Optional[int] = None,
    ) -> List[int]:
        if study_mode is StudyMode.FOCUSED:
            return self.select_focused(edition, progress, canonical_size)
        return self.select_random(edition, progress, canonical_size, needed)

    def select_random(
        self,
        edition: Edition,
        progress: ProgressRecord,
        canonical_size: int,
        needed: Optional[int] = None,
    ) -> List[int]:
        """
        Unseen questions first, then previously-seen ones only if needed to
        fill the session. No index appears twice.
        """
        if canonical_size <= 0:
            raise QuestionBankEmpty(edition.id)
        needed = edition.total if needed is None else needed

        asked = {i for i in progress.asked if 0 <= i < canonical_size}
        unasked = self.shuffled(set(range(canonical_size)) - asked)
        if len(unasked) >= needed:
            return unasked[:needed]

        logger.debug(
            "edition=%s only %d unasked question(s), topping up from %d asked",
            edition.id, len(unasked), len(asked),
        )
        return (unasked + self.shuffled(asked))[:needed]

    def select_focused(self, edition: Edition, progress: ProgressRecord, canonical_size: int) -> List[int]:
        """Previously-missed questions only, capped for presentation."""
        incorrect = {i for i in progress.incorrect if 0 <= i < canonical_size}
        if not incorrect:
            raise SelectionExhausted(edition.id)
        return self.shuffled(incorrect)[:FOCUSED_MAX_QUESTIONS]
