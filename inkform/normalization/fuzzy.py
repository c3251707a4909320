"""Edit-distance matching against closed dictionaries.

Used by the Arabic-text normalizers to snap OCR-garbled department names
and name tokens onto known spellings.
"""

from collections.abc import Iterable

from inkform.utils.logger import get_logger

logger = get_logger(__name__)


class FuzzyMatcher:
    """Levenshtein distance with a bounded memo and thresholded lookup.

    Args:
        cache_size: Number of memoized pairs kept before the cache is
            cleared wholesale.
    """

    def __init__(self, cache_size: int = 1000) -> None:
        self.cache_size = cache_size
        self._cache: dict[tuple[str, str], int] = {}

    def distance(self, a: str, b: str) -> int:
        """Unit-cost insert/delete/substitute distance between two strings."""
        key = (a, b) if a <= b else (b, a)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self._compute(a, b)
        if len(self._cache) >= self.cache_size:
            self._cache.clear()
        self._cache[key] = result
        return result

    @staticmethod
    def _compute(a: str, b: str) -> int:
        # Keep the shorter string on the row axis.
        if len(a) < len(b):
            a, b = b, a
        if not b:
            return len(a)

        previous = list(range(len(b) + 1))
        for i, ca in enumerate(a, 1):
            current = [i]
            for j, cb in enumerate(b, 1):
                cost = 0 if ca == cb else 1
                current.append(
                    min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
                )
            previous = current
        return previous[-1]

    @staticmethod
    def max_distance(value: str) -> int:
        """Allowed distance for a lookup value: 2 up to 5 chars, else 3."""
        return 2 if len(value) <= 5 else 3

    def best_match(self, value: str, dictionary: Iterable[str]) -> str | None:
        """Return the closest dictionary entry within the threshold.

        Entries whose length differs from ``value`` by more than the
        threshold are skipped without computing a distance. Ties go to the
        entry seen first.

        Args:
            value: Candidate string read by OCR.
            dictionary: Known spellings, iterated in order.

        Returns:
            The best entry, or ``None`` if nothing is close enough.
        """
        if not value:
            return None

        threshold = self.max_distance(value)
        best: str | None = None
        best_distance = threshold + 1

        for entry in dictionary:
            if abs(len(entry) - len(value)) > threshold:
                continue
            d = self.distance(value, entry)
            if d < best_distance:
                best, best_distance = entry, d
                if d == 0:
                    break

        if best is not None:
            logger.debug("Fuzzy match %r -> %r (distance=%d)", value, best, best_distance)
        return best
