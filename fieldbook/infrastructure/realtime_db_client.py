"""
Infrastructure layer: Firebase Realtime Database REST client.

Reads and writes go through ``<base>/<path>.json``. Subscriptions use the
REST streaming protocol (server-sent events) and yield the full snapshot of
the watched path after every change. No retries are made here; a failed
request surfaces as DatabaseError.
"""
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from fieldbook.config import settings
from fieldbook.infrastructure.store_paths import APIConstants

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Raised when a database read, write or subscription fails."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def apply_event(snapshot: Any, path: str, data: Any, merge: bool = False) -> Any:
    """
    Apply a streamed change to a local snapshot.

    A ``put`` replaces the value at ``path`` (None deletes it). A ``patch``
    (``merge=True``) sets each child of ``data`` below ``path``. The input
    snapshot is not modified; changed branches are copied.

    Args:
        snapshot: Current value of the watched location
        path: Path of the change relative to the watched location
        data: New value
        merge: Whether this is a patch event

    Returns:
        The updated snapshot
    """
    segments = _segments(path)

    if merge:
        for child, value in (data or {}).items():
            snapshot = apply_event(snapshot, "/".join(segments + _segments(child)), value)
        return snapshot

    if not segments:
        return data

    root = dict(snapshot) if isinstance(snapshot, dict) else {}
    node = root
    for segment in segments[:-1]:
        child = node.get(segment)
        child = dict(child) if isinstance(child, dict) else {}
        node[segment] = child
        node = child

    if data is None:
        node.pop(segments[-1], None)
    else:
        node[segments[-1]] = data

    return root or None


async def _iter_events(lines: AsyncIterator[str]) -> AsyncIterator[Tuple[str, str]]:
    """Group server-sent event lines into (event, data) pairs."""
    event = "message"
    data: List[str] = []
    async for line in lines:
        if not line:
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
        elif line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data.append(line[len("data:"):].strip())
    if data:
        yield event, "\n".join(data)


class RealtimeDatabaseClient:
    """
    Client for the Firebase Realtime Database REST API.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the database client with configuration."""
        self.base_url = (base_url or settings.database_url).rstrip("/")
        self.auth_token = settings.database_auth_token if auth_token is None else auth_token
        self.timeout = timeout or settings.database_timeout
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"accept": APIConstants.CONTENT_TYPE_JSON},
            timeout=self.timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "RealtimeDatabaseClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _url(self, path: str) -> str:
        quoted = "/".join(quote(segment, safe="") for segment in _segments(path))
        return f"/{quoted}.json"

    def _params(self) -> Dict[str, str]:
        return {"auth": self.auth_token} if self.auth_token else {}

    async def _make_request(
        self,
        method: str,
        path: str,
        **kwargs
    ) -> Any:
        """
        Make a single HTTP request against a database path.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: Database path, e.g. ``ClientInfo/-Nabc``
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON payload (None for an empty location)

        Raises:
            DatabaseError: If the request fails
        """
        try:
            response = await self.client.request(
                method, self._url(path), params=self._params(), **kwargs
            )
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except httpx.HTTPStatusError as e:
            raise DatabaseError(
                f"Database request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise DatabaseError(f"Database request error: {str(e)}") from e
        except ValueError as e:
            raise DatabaseError(f"Invalid database response for {path}: {str(e)}") from e

    async def get(self, path: str) -> Any:
        """Read the value at a path; None when nothing is stored there."""
        return await self._make_request("GET", path)

    async def push(self, path: str, value: Any) -> str:
        """
        Append a value under a generated key.

        Returns:
            The generated key
        """
        data = await self._make_request("POST", path, json=value)
        if not isinstance(data, dict) or "name" not in data:
            raise DatabaseError(f"Unexpected push response for {path}: {data!r}")
        return data["name"]

    async def put(self, path: str, value: Any) -> Any:
        """Overwrite the value at a path."""
        return await self._make_request("PUT", path, json=value)

    async def patch(self, path: str, value: Dict[str, Any]) -> Any:
        """Update the given children at a path."""
        return await self._make_request("PATCH", path, json=value)

    async def delete(self, path: str) -> None:
        await self._make_request("DELETE", path)

    async def subscribe(self, path: str) -> AsyncIterator[Any]:
        """
        Watch a path and yield its full value after every change.

        The first item is the current value. The stream runs until the
        consumer closes the iterator, which also closes the connection.

        Raises:
            DatabaseError: If the stream cannot be opened, is cancelled or
                closed by the server, or the connection drops
        """
        snapshot: Any = None
        try:
            async with self.client.stream(
                "GET",
                self._url(path),
                params=self._params(),
                headers={"accept": APIConstants.EVENT_STREAM},
                timeout=httpx.Timeout(self.timeout, read=None),
                follow_redirects=True,
            ) as response:
                if response.status_code >= 300:
                    body = await response.aread()
                    raise DatabaseError(
                        f"Subscription to {path} failed: {response.status_code} - "
                        f"{body.decode(errors='replace')}",
                        status_code=response.status_code,
                    )

                logger.info(f"Subscribed to {path}")
                async for event, raw in _iter_events(response.aiter_lines()):
                    if event in ("put", "patch"):
                        payload = json.loads(raw)
                        snapshot = apply_event(
                            snapshot,
                            payload.get("path", "/"),
                            payload.get("data"),
                            merge=event == "patch",
                        )
                        yield snapshot
                    elif event in ("cancel", "auth_revoked"):
                        raise DatabaseError(
                            f"Subscription to {path} ended by server: {event}",
                            status_code=401 if event == "auth_revoked" else 403,
                        )
                    else:
                        logger.debug(f"Ignoring {event} event on {path}")

                raise DatabaseError(f"Subscription to {path} closed by server")
        except httpx.RequestError as e:
            raise DatabaseError(f"Subscription error on {path}: {str(e)}") from e
        except ValueError as e:
            raise DatabaseError(f"Invalid event on {path}: {str(e)}") from e
        finally:
            logger.info(f"Unsubscribed from {path}")


# Singleton instance
_db_client: Optional[RealtimeDatabaseClient] = None


def get_db_client() -> RealtimeDatabaseClient:
    """
    Get or create the singleton database client instance.

    Returns:
        RealtimeDatabaseClient instance
    """
    global _db_client
    if _db_client is None:
        _db_client = RealtimeDatabaseClient()
    return _db_client
