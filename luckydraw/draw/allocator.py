"""Constrained random-number allocation for a single draw."""

from __future__ import annotations

import logging
import secrets
from typing import AbstractSet, Callable, Optional

from ..errors import AllocationTransportFailure
from ..random_org.api import RandomOrgClient
from .types import GlobalSettings, RandomSource

logger = logging.getLogger(__name__)

REMOTE_BATCH_SIZE = 10
REMOTE_TIMEOUT_SECONDS = 3.0
ATTEMPTS_PER_NUMBER = 5


def local_random_int(minimum: int, maximum: int) -> int:
    """Return a uniform-ish integer in ``[minimum, maximum]`` from a CSPRNG.

    A 32-bit value from :mod:`secrets` is reduced modulo the range size. The
    modulo bias is negligible for event-sized ranges.
    """

    range_size = maximum - minimum + 1
    return minimum + secrets.randbits(32) % range_size


class NumberAllocator:
    """Allocates one winning number while honouring the exclusion set.

    The allocator prefers random.org when the settings ask for the remote
    source and an API key is available. Any failure of that path (timeout,
    transport error, error reply, malformed payload, every candidate already
    drawn) falls back silently to local generation.

    Parameters
    ----------
    client_factory : Optional[Callable[[str], RandomOrgClient]], default: None
        Builds the remote client for a given API key. Tests inject fakes here.
    local_source : Optional[Callable[[int, int], int]], default: None
        Local generator, defaults to :func:`local_random_int`.
    """

    def __init__(
        self,
        *,
        client_factory: Optional[Callable[[str], RandomOrgClient]] = None,
        local_source: Optional[Callable[[int, int], int]] = None,
    ) -> None:
        self._client_factory = client_factory or (
            lambda key: RandomOrgClient(key, timeout=REMOTE_TIMEOUT_SECONDS)
        )
        self._local_source = local_source or local_random_int
        # One long-lived client (and HTTP session) per API key.
        self._clients: dict[str, RandomOrgClient] = {}

    def _client_for(self, api_key: str) -> RandomOrgClient:
        client = self._clients.get(api_key)
        if client is None:
            client = self._clients[api_key] = self._client_factory(api_key)
        return client

    def close(self) -> None:
        """Close every cached remote client."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            client.close()

    def allocate(
        self,
        minimum: int,
        maximum: int,
        exclude: AbstractSet[int],
        settings: GlobalSettings,
    ) -> Optional[int]:
        """Return a number in ``[minimum, maximum]`` outside ``exclude``.

        Parameters
        ----------
        minimum, maximum : int
            Inclusive bounds of the draw.
        exclude : AbstractSet[int]
            Numbers already won. Only applied when
            ``settings.exclude_previous_winners`` is set.
        settings : GlobalSettings
            Source policy and exclusion flag.

        Returns
        -------
        Optional[int]
            The allocated number, or ``None`` when the pool is exhausted or
            local generation gave up after ``5 x range size`` attempts.
        """

        range_size = maximum - minimum + 1
        taken: AbstractSet[int] = exclude if settings.exclude_previous_winners else frozenset()
        if settings.exclude_previous_winners and len(exclude) >= range_size:
            logger.info(f"Pool exhausted: {len(exclude)} of {range_size} numbers already drawn")
            return None

        if settings.random_source == RandomSource.REMOTE:
            number = self._allocate_remote(minimum, maximum, taken, settings.remote_api_key)
            if number is not None:
                return number

        return self._allocate_local(minimum, maximum, taken, range_size)

    def _allocate_remote(
        self,
        minimum: int,
        maximum: int,
        taken: AbstractSet[int],
        api_key: Optional[str],
    ) -> Optional[int]:
        client = self._client_for((api_key or "").strip())
        if not client.configured:
            return None
        try:
            candidates = client.generate_integers(REMOTE_BATCH_SIZE, minimum, maximum)
        except AllocationTransportFailure as e:
            logger.warning(f"Falling back to local randomness: {e.message}")
            return None
        for candidate in candidates:
            if minimum <= candidate <= maximum and candidate not in taken:
                return candidate
        logger.debug("Every remote candidate was already drawn; using local randomness")
        return None

    def _allocate_local(
        self,
        minimum: int,
        maximum: int,
        taken: AbstractSet[int],
        range_size: int,
    ) -> Optional[int]:
        max_attempts = ATTEMPTS_PER_NUMBER * range_size
        for _ in range(max_attempts):
            candidate = self._local_source(minimum, maximum)
            if candidate not in taken:
                return candidate
        logger.warning(f"Gave up after {max_attempts} local attempts")
        return None


__all__ = ["NumberAllocator", "local_random_int"]
