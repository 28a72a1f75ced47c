"""
Random question generation for the Composition quiz game.
"""
import logging
import random
from typing import Optional

from .models import Question

logger = logging.getLogger(__name__)


class QuestionGenerator:
    """Generates "missing term" questions bounded by a maximum sum."""

    MIN_SUM_VALUE = 2
    MIN_ANSWER_VALUE = 1

    def __init__(self, count_of_options: int = 6, rng: Optional[random.Random] = None):
        """
        Initialize the generator.

        Args:
            count_of_options: Number of answer options offered per question
            rng: Random source, a fresh ``random.Random`` if None
        """
        self.count_of_options = count_of_options
        self._rng = rng or random.Random()

    def generate_question(self, max_sum_value: int) -> Question:
        """
        Generate a question whose sum does not exceed ``max_sum_value``.

        The right answer is always one of the options. Distractors are
        distinct values near the right answer; fewer options are returned
        when the allowed range is too narrow.

        Raises:
            ValueError: If max_sum_value is below the minimum sum
        """
        if max_sum_value < self.MIN_SUM_VALUE:
            raise ValueError(f"max_sum_value must be at least {self.MIN_SUM_VALUE}, got {max_sum_value}")

        total = self._rng.randint(self.MIN_SUM_VALUE, max_sum_value)
        visible_value = self._rng.randint(self.MIN_ANSWER_VALUE, total - 1)
        right_answer = total - visible_value

        lower = max(right_answer - self.count_of_options, self.MIN_ANSWER_VALUE)
        upper = max(min(max_sum_value, right_answer + self.count_of_options), right_answer)
        candidates = [value for value in range(lower, upper + 1) if value != right_answer]

        distractor_count = min(self.count_of_options - 1, len(candidates))
        options = [right_answer] + self._rng.sample(candidates, distractor_count)
        self._rng.shuffle(options)

        logger.debug(f"Generated question {total} = {visible_value} + ? with {len(options)} options")
        return Question(sum=total, visible_value=visible_value, options=tuple(options))
