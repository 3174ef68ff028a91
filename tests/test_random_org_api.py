import os
import unittest
from unittest.mock import patch

import requests

from luckydraw.errors import AllocationTransportFailure
from luckydraw.random_org.api import DEFAULT_ENDPOINT, RandomOrgClient


class DummyResponse:
    def __init__(self, json_data=None, status_error=None, bad_json=False):
        self._json = json_data
        self._status_error = status_error
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._json

    def raise_for_status(self):
        if self._status_error is not None:
            raise self._status_error


class DummySession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


def _ok(data):
    return DummyResponse(json_data={"jsonrpc": "2.0", "result": {"random": {"data": data}}, "id": 1})


@patch("luckydraw.random_org.api.load_dotenv")
class TestRandomOrgClient(unittest.TestCase):
    def test_api_key_falls_back_to_environment(self, mock_load_dotenv):
        with patch.dict(os.environ, {"RANDOM_ORG_API_KEY": "env-key"}, clear=True):
            client = RandomOrgClient(session=DummySession())
        self.assertEqual(client.api_key, "env-key")
        self.assertTrue(client.configured)
        self.assertEqual(client.endpoint, DEFAULT_ENDPOINT)

    def test_blank_key_is_not_configured(self, mock_load_dotenv):
        with patch.dict(os.environ, {}, clear=True):
            client = RandomOrgClient("   ", session=DummySession())
        self.assertFalse(client.configured)

    def test_generate_integers_sends_json_rpc_request(self, mock_load_dotenv):
        session = DummySession(_ok([5, 9, 1]))
        client = RandomOrgClient("key", endpoint="https://rng.example/invoke", session=session)

        self.assertEqual(client.generate_integers(10, 0, 133), [5, 9, 1])

        call = session.calls[0]
        self.assertEqual(call["url"], "https://rng.example/invoke")
        self.assertEqual(call["timeout"], 3.0)
        self.assertEqual(call["json"]["method"], "generateIntegers")
        self.assertEqual(
            call["json"]["params"],
            {"apiKey": "key", "n": 10, "min": 0, "max": 133, "replacement": True},
        )

    def test_error_member_raises_transport_failure(self, mock_load_dotenv):
        session = DummySession(DummyResponse(json_data={"error": {"code": 401, "message": "bad key"}}))
        client = RandomOrgClient("key", session=session)
        with self.assertRaises(AllocationTransportFailure) as ctx:
            client.generate_integers(10, 0, 9)
        self.assertEqual(ctx.exception.details, {"code": 401, "message": "bad key"})

    def test_timeout_raises_transport_failure(self, mock_load_dotenv):
        client = RandomOrgClient("key", session=DummySession(exc=requests.Timeout("slow")))
        with self.assertRaises(AllocationTransportFailure):
            client.generate_integers(10, 0, 9)

    def test_http_error_raises_transport_failure(self, mock_load_dotenv):
        response = DummyResponse(status_error=requests.HTTPError("503"))
        client = RandomOrgClient("key", session=DummySession(response))
        with self.assertRaises(AllocationTransportFailure):
            client.generate_integers(10, 0, 9)

    def test_malformed_payloads_raise_transport_failure(self, mock_load_dotenv):
        bodies = [
            DummyResponse(bad_json=True),
            DummyResponse(json_data=["not", "a", "dict"]),
            DummyResponse(json_data={"result": {}}),
            DummyResponse(json_data={"result": {"random": {"data": "123"}}}),
            DummyResponse(json_data={"result": {"random": {"data": [1, "2"]}}}),
        ]
        for body in bodies:
            client = RandomOrgClient("key", session=DummySession(body))
            with self.assertRaises(AllocationTransportFailure):
                client.generate_integers(10, 0, 9)

    def test_close_releases_session(self, mock_load_dotenv):
        session = DummySession(_ok([1]))
        client = RandomOrgClient("key", session=session)
        client.close()
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
