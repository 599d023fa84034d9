import logging
import random
import threading
from collections import deque

logger = logging.getLogger(__name__)


class RandomOutcomeProvider:
    """
    Source of every random draw the games make.

    Subclasses only supply ``_random`` (any ``random.Random`` compatible
    generator). Draws are serialized with a lock so a shared provider gives
    each concurrent bet its own, non-overlapping slice of the stream.
    """

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def _random(self) -> random.Random:
        raise NotImplementedError

    def draw_uniform(self, n: int) -> int:
        """Return an integer in ``[0, n)``."""
        if n < 1:
            raise ValueError("draw_uniform needs n >= 1, got %r" % (n,))
        with self._lock:
            return self._random.randrange(n)

    def draw_boolean(self, p: float) -> bool:
        """Return True with probability ``p``."""
        if not 0.0 <= p <= 1.0:
            raise ValueError("draw_boolean needs 0 <= p <= 1, got %r" % (p,))
        with self._lock:
            return self._random.random() < p


class SystemOutcomeProvider(RandomOutcomeProvider):
    """Draws from OS entropy. Used in production."""

    def __init__(self):
        super().__init__()
        self._generator = random.SystemRandom()

    @property
    def _random(self):
        return self._generator


class SeededOutcomeProvider(RandomOutcomeProvider):
    """Reproducible draws from a fixed seed."""

    def __init__(self, seed):
        super().__init__()
        self.seed = seed
        self._generator = random.Random(seed)

    @property
    def _random(self):
        return self._generator


class ScriptedOutcomeProvider(RandomOutcomeProvider):
    """
    Replays pre-recorded draws in order.

    ``uniform`` feeds ``draw_uniform`` and ``boolean`` feeds ``draw_boolean``.
    Running out of values, or a scripted value outside ``[0, n)``, raises
    ``LookupError`` so a test never silently falls back to chance.
    """

    def __init__(self, uniform=(), boolean=()):
        super().__init__()
        self._uniform = deque(uniform)
        self._boolean = deque(boolean)

    def queue_uniform(self, *values: int) -> None:
        with self._lock:
            self._uniform.extend(values)

    def queue_boolean(self, *values: bool) -> None:
        with self._lock:
            self._boolean.extend(values)

    @property
    def remaining(self) -> int:
        return len(self._uniform) + len(self._boolean)

    def draw_uniform(self, n: int) -> int:
        if n < 1:
            raise ValueError("draw_uniform needs n >= 1, got %r" % (n,))
        with self._lock:
            if not self._uniform:
                raise LookupError("Scripted uniform draws exhausted.")
            value = self._uniform.popleft()
        if not 0 <= value < n:
            raise LookupError("Scripted draw %d is outside [0, %d)." % (value, n))
        return value

    def draw_boolean(self, p: float) -> bool:
        if not 0.0 <= p <= 1.0:
            raise ValueError("draw_boolean needs 0 <= p <= 1, got %r" % (p,))
        with self._lock:
            if not self._boolean:
                raise LookupError("Scripted boolean draws exhausted.")
            return bool(self._boolean.popleft())


def build_outcome_provider(seed=None) -> RandomOutcomeProvider:
    if seed is None:
        return SystemOutcomeProvider()
    logger.warning("Using seeded outcome provider (seed=%s); draws are reproducible.", seed)
    return SeededOutcomeProvider(seed)
