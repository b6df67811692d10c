"""
HTTP client for the Blogify API that owns the caller's session state.

One request hook attaches the stored bearer token to every outgoing request;
one response hook reacts to a 401 by clearing the stored session and calling
on_logout. The client is either anonymous or authenticated, nothing in between.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from app.client.storage import SessionStorage, StoredSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0

ERROR_MESSAGES = {
    "network": "Network error. Please check your internet connection.",
    "timeout": "Request timeout. Please try again.",
    "unauthorized": "You are not authorized. Please log in.",
    "forbidden": "Access denied.",
    "not_found": "Resource not found.",
    "validation": "Please check your input and try again.",
    "server": "Server error. Please try again later.",
    "default": "Something went wrong. Please try again.",
}


class ApiClientError(Exception):
    """Raised for non-2xx responses and transport failures. status_code is None when no response arrived."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


def parse_error(status_code: int | None, data: Any = None) -> str:
    """Pick the message to show for a failed call: the server's message when it sent one."""
    if status_code is None:
        return ERROR_MESSAGES["network"]
    server_message = data.get("message") if isinstance(data, dict) else None
    if status_code == 400:
        errors = data.get("errors") if isinstance(data, dict) else None
        if server_message:
            return server_message
        if errors and isinstance(errors[0], dict) and errors[0].get("message"):
            return errors[0]["message"]
        return ERROR_MESSAGES["validation"]
    if status_code == 401:
        return server_message or ERROR_MESSAGES["unauthorized"]
    if status_code == 403:
        return server_message or ERROR_MESSAGES["forbidden"]
    if status_code == 404:
        return server_message or ERROR_MESSAGES["not_found"]
    if status_code == 408:
        return ERROR_MESSAGES["timeout"]
    if status_code in (500, 502, 503):
        return ERROR_MESSAGES["server"]
    return server_message or ERROR_MESSAGES["default"]


class BlogifyClient:
    """
    Blogify API client with persistent bearer-token session.

    base_url should include the API prefix, e.g. http://localhost:8000/api.
    Pass http_client to reuse an existing httpx.Client (its base_url is kept).
    The client takes ownership of it and installs its session hooks there;
    one httpx.Client backs at most one BlogifyClient.
    """

    def __init__(
        self,
        base_url: str,
        storage: SessionStorage,
        *,
        http_client: httpx.Client | None = None,
        on_logout: Callable[[], None] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self._storage = storage
        self._on_logout = on_logout
        self._user: dict[str, Any] | None = None
        self._restoring = False
        if http_client is None:
            http_client = httpx.Client(
                base_url=base_url,
                timeout=timeout,
                headers={"Content-Type": "application/json"},
            )
        hooks = http_client.event_hooks
        if any(isinstance(getattr(hook, "__self__", None), BlogifyClient) for hook in hooks.get("response", [])):
            raise ValueError("http_client already belongs to another BlogifyClient")
        http_client.event_hooks = {
            "request": [*hooks.get("request", []), self._attach_token],
            "response": [*hooks.get("response", []), self._handle_unauthorized],
        }
        self._http = http_client

    # -- session state ---------------------------------------------------

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def token(self) -> str | None:
        stored = self._storage.load()
        return stored.token if stored else None

    def _attach_token(self, request: httpx.Request) -> None:
        stored = self._storage.load()
        if stored is not None:
            request.headers["Authorization"] = f"Bearer {stored.token}"

    def _handle_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code != 401 or self._storage.load() is None:
            return
        logger.info("Session rejected by server; clearing stored token")
        self._clear()
        # A token rejected during restore() never made the client authenticated.
        if self._on_logout is not None and not self._restoring:
            self._on_logout()

    def _establish(self, token: str, user: dict[str, Any]) -> None:
        self._storage.save(StoredSession(token=token, user=user))
        self._user = user

    def _clear(self) -> None:
        self._storage.clear()
        self._user = None

    # -- transport -------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiClientError(ERROR_MESSAGES["timeout"]) from e
        except httpx.TransportError as e:
            raise ApiClientError(parse_error(None)) from e
        try:
            data = response.json()
        except ValueError:
            data = None
        if not response.is_success:
            raise ApiClientError(parse_error(response.status_code, data), response.status_code, data)
        return data

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "BlogifyClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- auth ------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        data = self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password}
        )
        self._establish(data["token"], data["user"])
        return data["user"]

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self._establish(data["token"], data["user"])
        return data["user"]

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/auth/me")["user"]

    def logout(self) -> None:
        """Tell the server (best effort) and drop the local session."""
        try:
            if self._storage.load() is not None:
                self._request("POST", "/auth/logout")
        except ApiClientError as e:
            logger.debug("Logout call failed: %s", e.message)
        finally:
            self._clear()

    def restore(self) -> dict[str, Any] | None:
        """
        Re-resolve the stored token at start-up.

        A rejected token (4xx) clears storage silently. On a transport error
        the stored session is kept for the next attempt, but the client stays
        anonymous until a call succeeds.
        """
        stored = self._storage.load()
        if stored is None:
            self._user = None
            return None
        self._restoring = True
        try:
            user = self.me()
        except ApiClientError as e:
            if e.status_code is not None and 400 <= e.status_code < 500:
                self._clear()
            else:
                self._user = None
            return None
        finally:
            self._restoring = False
        self._establish(stored.token, user)
        return user

    # -- posts -----------------------------------------------------------

    def list_posts(self, **params: Any) -> dict[str, Any]:
        return self._request("GET", "/posts", params={k: v for k, v in params.items() if v is not None})

    def get_post(self, post_id: int) -> dict[str, Any]:
        return self._request("GET", f"/posts/{post_id}")

    def create_post(self, post: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/posts", json=post)

    def update_post(self, post_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/posts/{post_id}", json=changes)

    def delete_post(self, post_id: int) -> dict[str, Any]:
        return self._request("DELETE", f"/posts/{post_id}")

    def like_post(self, post_id: int) -> dict[str, Any]:
        return self._request("POST", f"/posts/{post_id}/like")

    def featured_posts(self) -> list[dict[str, Any]]:
        return self._request("GET", "/posts/featured")

    def trending_posts(self) -> list[dict[str, Any]]:
        return self._request("GET", "/posts/trending")

    # -- users -----------------------------------------------------------

    def get_user(self, user_id: int) -> dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")["user"]

    def update_user(self, user_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        user = self._request("PUT", f"/users/{user_id}", json=changes)["user"]
        stored = self._storage.load()
        if stored is not None and self._user is not None and self._user.get("id") == user_id:
            self._establish(stored.token, user)
        return user

    def get_user_posts(self, user_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/users/{user_id}/posts")
