import random
from typing import Container, Optional

from taggame.errors import RoomCodesExhausted

CODE_MIN = 1000
CODE_MAX = 9999


class RoomCodeAllocator:
    """Hand out 4-digit room codes that are not currently live.

    Random draws first; after `attempts` collisions fall back to a scan of
    the whole code space so allocation only fails when every code is taken.
    """

    def __init__(self, rng: Optional[random.Random] = None, attempts: int = 100):
        self._rng = rng or random.Random()
        self._attempts = max(0, attempts)

    def allocate(self, live_codes: Container[str]) -> str:
        for _ in range(self._attempts):
            code = str(self._rng.randint(CODE_MIN, CODE_MAX))
            if code not in live_codes:
                return code
        start = self._rng.randint(CODE_MIN, CODE_MAX)
        span = CODE_MAX - CODE_MIN + 1
        for offset in range(span):
            code = str(CODE_MIN + (start - CODE_MIN + offset) % span)
            if code not in live_codes:
                return code
        raise RoomCodesExhausted()
