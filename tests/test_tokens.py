from concurrent.futures import ThreadPoolExecutor

import pytest

from streak_stats.core.errors import PoolExhaustedError
from streak_stats.core.tokens import NO_TOKEN_MESSAGE
from streak_stats.core.tokens import RATE_LIMITED_MESSAGE
from streak_stats.core.tokens import TokenPool
from streak_stats.core.tokens import discover_tokens
from streak_stats.settings import Settings


def test_take_returns_one_of_the_pooled_tokens() -> None:
    """A token is drawn from the configured set."""

    pool = TokenPool(["a", "b", "c"])

    assert pool.take() in {"a", "b", "c"}
    assert len(pool) == 3


def test_empty_and_duplicate_tokens_are_ignored() -> None:
    pool = TokenPool(["a", "", "a"])

    assert len(pool) == 1


def test_take_from_empty_pool_raises() -> None:
    """An empty pool reports that no token is available."""

    pool = TokenPool([])

    with pytest.raises(PoolExhaustedError) as exc_info:
        pool.take()

    assert str(exc_info.value) == NO_TOKEN_MESSAGE


def test_evict_removes_token_permanently() -> None:
    """Evicted tokens are never handed out again."""

    pool = TokenPool(["a", "b"])

    pool.evict("a")

    assert len(pool) == 1
    assert {pool.take() for _ in range(20)} == {"b"}


def test_evicting_last_token_raises_rate_limited() -> None:
    """Emptying the pool through eviction is fatal for the request."""

    pool = TokenPool(["a"])

    with pytest.raises(PoolExhaustedError) as exc_info:
        pool.evict("a")

    assert str(exc_info.value) == RATE_LIMITED_MESSAGE
    assert len(pool) == 0


def test_discover_tokens_stops_at_first_missing_index() -> None:
    """Numbered tokens are read in order until a gap."""

    settings = Settings(github_token="primary")
    environ = {
        "GITHUB_TOKEN2": "second",
        "GITHUB_TOKEN3": "third",
        "GITHUB_TOKEN5": "unreachable",
    }

    assert discover_tokens(settings, environ) == ["primary", "second", "third"]


def test_discover_tokens_without_primary_token() -> None:
    settings = Settings(github_token="")

    assert discover_tokens(settings, {"GITHUB_TOKEN2": "second"}) == ["second"]


def test_concurrent_take_and_evict_from_threads() -> None:
    """Concurrent evictions remove exactly the evicted tokens."""

    tokens = [f"token-{index}" for index in range(100)]
    pool = TokenPool(tokens)
    evicted = tokens[:60]

    def worker(chunk: list[str]) -> None:
        for token in chunk:
            pool.take()
            pool.evict(token)

    with ThreadPoolExecutor(max_workers=6) as executor:
        list(executor.map(worker, [evicted[start::6] for start in range(6)]))

    assert len(pool) == 40
    assert {pool.take() for _ in range(500)} <= set(tokens[60:])
