import logging
import random
from collections.abc import Iterable
from collections.abc import Mapping
from threading import Lock

from streak_stats.core.errors import PoolExhaustedError
from streak_stats.settings import Settings


logger = logging.getLogger(__name__)

NO_TOKEN_MESSAGE = "There is no GitHub token available."
RATE_LIMITED_MESSAGE = (
    "We are being rate-limited! Check https://git.io/streak-ratelimit for details."
)


class TokenPool:
    """Process-wide set of interchangeable GitHub tokens.

    Tokens are handed out at random to spread request volume. A token that
    hits the rate limit is evicted for the rest of the process lifetime.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        # dict keeps insertion order and drops duplicates.
        self._tokens: dict[str, None] = dict.fromkeys(t for t in tokens if t)
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)

    def take(self) -> str:
        with self._lock:
            if not self._tokens:
                raise PoolExhaustedError(NO_TOKEN_MESSAGE)
            return random.choice(list(self._tokens))

    def evict(self, token: str) -> None:
        """Remove a rate-limited token.

        Raises:
            PoolExhaustedError: If the pool is empty after the eviction.
        """

        with self._lock:
            if token in self._tokens:
                del self._tokens[token]
                logger.warning(
                    "Evicted rate-limited GitHub token, %d remaining", len(self._tokens)
                )
            if not self._tokens:
                raise PoolExhaustedError(RATE_LIMITED_MESSAGE)


def discover_tokens(settings: Settings, environ: Mapping[str, str]) -> list[str]:
    """Collect GITHUB_TOKEN followed by GITHUB_TOKEN2, GITHUB_TOKEN3, ...

    Numbering stops at the first missing or empty index.
    """

    tokens: list[str] = []
    if settings.github_token:
        tokens.append(settings.github_token)

    index = 2
    while value := environ.get(f"GITHUB_TOKEN{index}"):
        tokens.append(value)
        index += 1

    return tokens
