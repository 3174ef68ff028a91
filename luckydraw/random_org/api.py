"""JSON-RPC client for random.org's true-random integer service."""

import logging
import os
import time
from typing import Any, Optional

import requests
from dotenv import load_dotenv

from ..errors import AllocationTransportFailure

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.random.org/json-rpc/4/invoke"
DEFAULT_TIMEOUT = 3.0


class RandomOrgClient:
    """Minimal JSON-RPC client for random.org's ``generateIntegers`` method."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        endpoint: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        self.api_key = (api_key or os.getenv("RANDOM_ORG_API_KEY") or "").strip()
        self.endpoint = endpoint or os.getenv("RANDOM_ORG_URL") or DEFAULT_ENDPOINT
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def headers(self) -> dict:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self.session.close()

    # -------- core request --------
    def _invoke(self, method: str, params: dict) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": {"apiKey": self.api_key, **params},
            "id": int(time.time() * 1000),
        }
        try:
            r = self.session.post(
                self.endpoint,
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
            r.raise_for_status()
            body = r.json()
        except requests.RequestException as e:
            raise AllocationTransportFailure(f"random.org request failed: {e}") from e
        except ValueError as e:
            raise AllocationTransportFailure("random.org returned a non-JSON body") from e

        if not isinstance(body, dict):
            raise AllocationTransportFailure(f"Unexpected random.org response: {body!r}")
        if body.get("error"):
            # Never echo the request; it carries the API key.
            raise AllocationTransportFailure(
                "random.org reported an error", details=body["error"]
            )
        return body.get("result")

    # -------- API callers --------
    def generate_integers(
        self, n: int, minimum: int, maximum: int, replacement: bool = True
    ) -> list[int]:
        """Fetch ``n`` true-random integers in ``[minimum, maximum]``.

        Raises
        ------
        AllocationTransportFailure
            On timeout, transport error, an ``error`` member in the reply or
            any reply whose ``result.random.data`` is not a list of ints.
        """
        result = self._invoke(
            "generateIntegers",
            {"n": n, "min": minimum, "max": maximum, "replacement": replacement},
        )
        data = None
        if isinstance(result, dict) and isinstance(result.get("random"), dict):
            data = result["random"].get("data")
        if not isinstance(data, list) or not all(
            isinstance(v, int) and not isinstance(v, bool) for v in data
        ):
            raise AllocationTransportFailure("Malformed random.org payload")
        logger.debug(f"random.org returned {len(data)} integers")
        return data
