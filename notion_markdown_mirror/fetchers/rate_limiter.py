"""Token-bucket pacing and bounded linear-backoff retry around remote calls."""

import logging
import re
import time
from threading import Lock
from typing import Callable, Optional, TypeVar

import requests

from ..notion_client import NotionApiError
from .base_fetcher import RetriesExceededError

logger = logging.getLogger('notion_markdown_mirror.fetcher.rate_limiter')

T = TypeVar('T')

TRANSIENT_CODES = {
    'rate_limited',
    'service_unavailable',
    'request_timeout',
    'gateway_timeout',
    'response_error',
    'connection_error',
}
TRANSIENT_STATUSES = {429, 502, 503, 504}
TRANSIENT_MESSAGE_PATTERN = re.compile(r'timeout|limit', re.IGNORECASE)


class TokenBucket:
    """Thread-safe token bucket refilled continuously at a fixed rate."""

    def __init__(
        self,
        tokens_per_interval: int = 3,
        interval_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        if tokens_per_interval < 1 or interval_seconds <= 0:
            raise ValueError("Token bucket needs at least one token per positive interval")

        self.capacity = float(tokens_per_interval)
        self.rate = tokens_per_interval / interval_seconds
        self.tokens = self.capacity
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated
        if elapsed > 0:
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
            self._updated = now

    def try_acquire(self) -> float:
        """Take a token if one is available. Returns 0.0 on success, else seconds to wait."""
        with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return 0.0
            return (1 - self.tokens) / self.rate

    def acquire(self) -> None:
        """Block until a token has been taken."""
        while True:
            wait = self.try_acquire()
            if wait <= 0:
                return
            logger.debug(f"*** delaying {wait:.3f}s for rate limit")
            self._sleep(wait)


def is_transient_error(error: BaseException) -> bool:
    """
    Decide whether an error is worth retrying.

    Args:
        error: The exception raised by the operation

    Returns:
        True for timeouts, rate limiting and temporary unavailability
    """
    if isinstance(error, (requests.exceptions.Timeout, requests.exceptions.ConnectionError)):
        return True

    if isinstance(error, NotionApiError):
        if error.code in TRANSIENT_CODES:
            return True
        if error.status in TRANSIENT_STATUSES:
            return True

    return bool(TRANSIENT_MESSAGE_PATTERN.search(str(error)))


class RateLimitedFetcher:
    """Runs remote operations through one shared token bucket with bounded retries."""

    def __init__(
        self,
        bucket: Optional[TokenBucket] = None,
        max_retries: int = 10,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the fetcher.

        Args:
            bucket: Shared token bucket (a 3-per-second bucket when omitted)
            max_retries: Maximum attempts per operation
            base_delay: Backoff step; the delay after attempt i is i * base_delay
            sleep: Sleep function (injectable for tests)
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.bucket = bucket or TokenBucket()
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep
        self.stats = {
            'calls': 0,
            'attempts': 0,
            'retries': 0,
        }

    def execute(self, label: str, operation: Callable[[], T]) -> T:
        """
        Run an operation, retrying transient failures with linear backoff.

        Args:
            label: Human-readable name used in log messages
            operation: Zero-argument remote call

        Returns:
            Whatever the operation returns

        Raises:
            RetriesExceededError: When every allowed attempt failed transiently
            Exception: Any non-transient error, unchanged and unretried
        """
        self.stats['calls'] += 1
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_retries + 1):
            self.bucket.acquire()
            self.stats['attempts'] += 1
            try:
                return operation()
            except Exception as e:
                if not is_transient_error(e):
                    raise
                last_error = e

            if attempt == self.max_retries:
                break

            delay = attempt * self.base_delay
            self.stats['retries'] += 1
            logger.warning(
                f'While doing "{label}", got error "{last_error}". '
                f'Will retry after {delay:g}s (attempt {attempt}/{self.max_retries})...'
            )
            self._sleep(delay)

        logger.error(f'Error: could not complete "{label}" after {self.max_retries} retries.')
        raise RetriesExceededError(label, self.max_retries, last_error) from last_error

    @classmethod
    def from_config(cls, config: dict) -> 'RateLimitedFetcher':
        rate_config = config.get('rate_limit', {})
        retry_config = config.get('retry', {})
        bucket = TokenBucket(
            tokens_per_interval=int(rate_config.get('tokens_per_interval', 3)),
            interval_seconds=float(rate_config.get('interval_seconds', 1.0))
        )
        return cls(
            bucket=bucket,
            max_retries=int(retry_config.get('max_retries', 10)),
            base_delay=float(retry_config.get('base_delay_seconds', 1.0))
        )


__all__ = ['RateLimitedFetcher', 'TokenBucket', 'is_transient_error']
