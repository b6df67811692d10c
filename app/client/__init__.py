"""Python client for the Blogify API with a persistent bearer-token session."""

from app.client.session import ApiClientError, BlogifyClient, parse_error
from app.client.storage import FileSessionStorage, MemorySessionStorage, StoredSession

__all__ = [
    "ApiClientError",
    "BlogifyClient",
    "FileSessionStorage",
    "MemorySessionStorage",
    "StoredSession",
    "parse_error",
]
