"""Tests for the API client's session handling, against mock transports and the real app."""

import json
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from typing import Any

import httpx
from fastapi.testclient import TestClient

from app.client import (
    ApiClientError,
    BlogifyClient,
    FileSessionStorage,
    MemorySessionStorage,
    StoredSession,
    parse_error,
)
from app.client.session import ERROR_MESSAGES
from app.main import app
from tests.support import ApiTestCase

ANN = {"id": 1, "name": "Ann", "email": "ann@x.com", "role": "user"}


class MockApi:
    """Records requests and answers from a route table of (method, path) -> (status, body)."""

    def __init__(self, routes: dict[tuple[str, str], tuple[int, Any]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"message": "Not here"}))
        return httpx.Response(status, json=body)


def _client(api: Any, storage: Any = None, on_logout: Any = None) -> BlogifyClient:
    http = httpx.Client(base_url="http://blogify.test/api", transport=httpx.MockTransport(api))
    return BlogifyClient(
        "http://blogify.test/api",
        storage if storage is not None else MemorySessionStorage(),
        http_client=http,
        on_logout=on_logout,
    )


class TestParseError(unittest.TestCase):
    def test_server_message_wins(self) -> None:
        self.assertEqual(parse_error(403, {"message": "No way"}), "No way")
        self.assertEqual(parse_error(400, {"message": "User already exists"}), "User already exists")

    def test_first_field_error(self) -> None:
        data = {"errors": [{"field": "email", "message": "bad email"}]}
        self.assertEqual(parse_error(400, data), "bad email")

    def test_fallbacks(self) -> None:
        self.assertEqual(parse_error(None), ERROR_MESSAGES["network"])
        self.assertEqual(parse_error(401, None), ERROR_MESSAGES["unauthorized"])
        self.assertEqual(parse_error(404, "oops"), ERROR_MESSAGES["not_found"])
        self.assertEqual(parse_error(408), ERROR_MESSAGES["timeout"])
        self.assertEqual(parse_error(500, {"message": "trace..."}), ERROR_MESSAGES["server"])
        self.assertEqual(parse_error(418), ERROR_MESSAGES["default"])


class TestSessionLifecycle(unittest.TestCase):
    def setUp(self) -> None:
        self.logouts: list[bool] = []
        self.storage = MemorySessionStorage()

    def _on_logout(self) -> None:
        self.logouts.append(True)

    def test_login_stores_token_and_attaches_it(self) -> None:
        api = MockApi({
            ("POST", "/api/auth/login"): (200, {"token": "tok-1", "user": ANN}),
            ("GET", "/api/posts"): (200, {"posts": []}),
        })
        client = _client(api, self.storage)
        user = client.login("ann@x.com", "secret1")
        self.assertEqual(user, ANN)
        self.assertTrue(client.is_authenticated)
        self.assertEqual(self.storage.load().token, "tok-1")
        self.assertNotIn("authorization", api.requests[0].headers)

        client.list_posts(page=1, category=None)
        self.assertEqual(api.requests[1].headers["authorization"], "Bearer tok-1")
        self.assertEqual(dict(api.requests[1].url.params), {"page": "1"})

    def test_failed_login_keeps_anonymous(self) -> None:
        api = MockApi({("POST", "/api/auth/login"): (401, {"message": "Invalid credentials"})})
        client = _client(api, self.storage, self._on_logout)
        with self.assertRaises(ApiClientError) as ctx:
            client.login("ann@x.com", "wrong")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Invalid credentials")
        self.assertFalse(client.is_authenticated)
        self.assertEqual(self.logouts, [])

    def test_any_401_clears_session_and_notifies(self) -> None:
        self.storage.save(StoredSession(token="stale", user=ANN))
        api = MockApi({("POST", "/api/posts"): (401, {"message": "Session expired"})})
        client = _client(api, self.storage, self._on_logout)
        with self.assertRaises(ApiClientError):
            client.create_post({"title": "Hello"})
        self.assertIsNone(self.storage.load())
        self.assertIsNone(client.token)
        self.assertFalse(client.is_authenticated)
        self.assertEqual(self.logouts, [True])

    def test_403_keeps_session(self) -> None:
        self.storage.save(StoredSession(token="tok", user=ANN))
        api = MockApi({("DELETE", "/api/posts/3"): (403, {"message": "Access denied"})})
        client = _client(api, self.storage, self._on_logout)
        with self.assertRaises(ApiClientError) as ctx:
            client.delete_post(3)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(self.storage.load().token, "tok")
        self.assertEqual(self.logouts, [])

    def test_logout_clears_even_if_server_unreachable(self) -> None:
        self.storage.save(StoredSession(token="tok", user=ANN))

        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(down, self.storage)
        client.logout()
        self.assertIsNone(self.storage.load())
        self.assertFalse(client.is_authenticated)

    def test_transport_error_maps_to_network_message(self) -> None:
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(down, self.storage)
        with self.assertRaises(ApiClientError) as ctx:
            client.featured_posts()
        self.assertIsNone(ctx.exception.status_code)
        self.assertEqual(ctx.exception.message, ERROR_MESSAGES["network"])


class TestRestore(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = MemorySessionStorage(StoredSession(token="tok", user={"id": 1}))

    def test_nothing_stored(self) -> None:
        client = _client(MockApi({}), MemorySessionStorage())
        self.assertIsNone(client.restore())
        self.assertFalse(client.is_authenticated)

    def test_valid_token_refreshes_cached_user(self) -> None:
        api = MockApi({("GET", "/api/auth/me"): (200, {"user": ANN})})
        client = _client(api, self.storage)
        self.assertEqual(client.restore(), ANN)
        self.assertTrue(client.is_authenticated)
        self.assertEqual(self.storage.load().user, ANN)

    def test_rejected_token_is_cleared_silently(self) -> None:
        for status in (401, 404):
            with self.subTest(status=status):
                logouts: list[bool] = []
                storage = MemorySessionStorage(StoredSession(token="tok", user={"id": 1}))
                api = MockApi({("GET", "/api/auth/me"): (status, {"message": "nope"})})
                client = _client(api, storage, lambda: logouts.append(True))
                self.assertIsNone(client.restore())
                self.assertIsNone(storage.load())
                self.assertFalse(client.is_authenticated)
                self.assertEqual(logouts, [])

    def test_later_401_still_notifies(self) -> None:
        logouts: list[bool] = []
        api = MockApi({
            ("GET", "/api/auth/me"): (200, {"user": ANN}),
            ("POST", "/api/posts"): (401, {"message": "Session expired"}),
        })
        client = _client(api, self.storage, lambda: logouts.append(True))
        client.restore()
        with self.assertRaises(ApiClientError):
            client.create_post({"title": "Hello"})
        self.assertEqual(logouts, [True])
        self.assertFalse(client.is_authenticated)

    def test_network_error_keeps_stored_token(self) -> None:
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(down, self.storage)
        self.assertIsNone(client.restore())
        self.assertFalse(client.is_authenticated)
        self.assertEqual(self.storage.load().token, "tok")


class TestHttpClientOwnership(unittest.TestCase):
    def test_shared_http_client_rejected(self) -> None:
        http = httpx.Client(base_url="http://blogify.test/api", transport=httpx.MockTransport(MockApi({})))
        BlogifyClient("http://blogify.test/api", MemorySessionStorage(), http_client=http)
        with self.assertRaises(ValueError):
            BlogifyClient("http://blogify.test/api", MemorySessionStorage(), http_client=http)
        self.assertEqual(len(http.event_hooks["response"]), 1)

    def test_existing_hooks_are_kept(self) -> None:
        seen: list[int] = []
        http = httpx.Client(
            base_url="http://blogify.test/api",
            transport=httpx.MockTransport(MockApi({("GET", "/api/posts/featured"): (200, [])})),
            event_hooks={"response": [lambda response: seen.append(response.status_code)]},
        )
        client = BlogifyClient("http://blogify.test/api", MemorySessionStorage(), http_client=http)
        client.featured_posts()
        self.assertEqual(seen, [200])


class TestFileSessionStorage(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "session.json"
        self.storage = FileSessionStorage(self.path)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_save_load_clear(self) -> None:
        self.assertIsNone(self.storage.load())
        self.storage.save(StoredSession(token="tok", user=ANN))
        self.assertEqual(FileSessionStorage(self.path).load(), StoredSession(token="tok", user=ANN))
        self.assertEqual(list(self.path.parent.glob("*.tmp")), [])
        self.storage.clear()
        self.assertFalse(self.path.exists())
        self.storage.clear()

    def test_overwrite(self) -> None:
        self.storage.save(StoredSession(token="one", user={}))
        self.storage.save(StoredSession(token="two", user={}))
        self.assertEqual(json.loads(self.path.read_text(encoding="utf-8"))["token"], "two")

    def test_corrupt_file_is_ignored(self) -> None:
        self.path.parent.mkdir(parents=True)
        for content in ("{not json", "[]", '{"user": {}}'):
            with self.subTest(content=content):
                self.path.write_text(content, encoding="utf-8")
                with self.assertLogs("app.client.storage", level="WARNING"):
                    self.assertIsNone(self.storage.load())

    def test_empty_token_is_no_session(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text('{"token": ""}', encoding="utf-8")
        self.assertIsNone(self.storage.load())


class TestAgainstApp(ApiTestCase):
    """The client driving the real app through TestClient."""

    def test_register_restore_and_expire(self) -> None:
        storage = MemorySessionStorage()
        http = TestClient(app, base_url="http://testserver/api")
        client = BlogifyClient("http://testserver/api", storage, http_client=http)

        user = client.register("Ann", "Ann@X.com", "secret1")
        self.assertEqual(user["email"], "ann@x.com")
        post = client.create_post({
            "title": "Client post",
            "content": "Written through the client session.",
            "category": "Lifestyle",
            "status": "published",
        })["post"]
        self.assertEqual(client.like_post(post["id"])["likes"], 1)

        fresh = BlogifyClient(
            "http://testserver/api",
            storage,
            http_client=TestClient(app, base_url="http://testserver/api"),
        )
        self.assertEqual(fresh.restore()["id"], user["id"])

        self.clock.advance(timedelta(days=8))
        self.assertIsNone(fresh.restore())
        self.assertIsNone(storage.load())


if __name__ == "__main__":
    unittest.main()
