"""Random field values for synthesized tasks."""

from __future__ import annotations

import random
import string
from collections.abc import Callable
from datetime import date

from tasksoak.models import Priority

# Printable ASCII: letters, digits, punctuation and the space character
ALPHABET = string.ascii_letters + string.digits + string.punctuation + " "

YEAR_OFFSETS = range(-5, 5)
MAX_DAY = 28  # valid in every month


class RandomValueGenerator:
    """
    Source of random titles, descriptions, due dates and priorities.

    Args:
        rng: Random number generator; pass a seeded ``random.Random`` to
            reproduce a run.
        today: Callable returning the reference date for due dates.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.rng = rng or random.Random()
        self._today = today

    def random_string(self, min_len: int, max_len: int) -> str:
        """Return a string of uniform random length in ``[min_len, max_len]``."""
        if min_len < 0 or min_len > max_len:
            raise ValueError(f"Invalid length range: [{min_len}, {max_len}]")
        length = self.rng.randint(min_len, max_len)
        return "".join(self.rng.choice(ALPHABET) for _ in range(length))

    def random_date(self) -> str:
        """Return a ``DD/MM/YYYY`` date within five years of today."""
        year = self._today().year + self.rng.choice(YEAR_OFFSETS)
        month = self.rng.randint(1, 12)
        day = self.rng.randint(1, MAX_DAY)
        return f"{day:02d}/{month:02d}/{year:04d}"

    def random_priority(self) -> Priority:
        return self.rng.choice(list(Priority))
