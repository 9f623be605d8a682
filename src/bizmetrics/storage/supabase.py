"""Hosted table API client (PostgREST conventions).

Requests look like::

    GET {url}/rest/v1/sales?select=total_amount,sale_date&sale_date=gte.2024-06-01&limit=100

with the project key sent as both ``apikey`` and bearer token.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from ..observability.loguru_config import get_logger
from .store import Filter, StorageError

__all__ = ["SupabaseRecordStore"]

logger = get_logger("storage")


class SupabaseRecordStore:
    """RecordStore backed by the hosted REST table API.

    Owns one ``httpx.Client``; close it on shutdown (or use the store as a
    context manager).
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Parameters
        ----------
        url
            Project URL, e.g. ``https://xyz.supabase.co``
        api_key
            Project API key
        timeout
            Request timeout in seconds
        transport
            Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.base_url = url.rstrip("/") + "/rest/v1"
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> SupabaseRecordStore:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _filter_params(filters: Sequence[Filter]) -> list[tuple[str, str]]:
        return [(f.field, f"{f.op}.{f.format_value()}") for f in filters]

    def _request(
        self,
        method: str,
        collection: str,
        *,
        params: list[tuple[str, str]],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = self._client.request(method, f"/{collection}", params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise StorageError(f"Request for '{collection}' timed out") from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Request for '{collection}' failed: {exc}") from exc

        if response.status_code >= 400:
            error_msg = response.text
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                error_msg = body.get("message", error_msg)
            raise StorageError(f"Table API error ({response.status_code}) for '{collection}': {error_msg}")

        return response

    def fetch(
        self,
        collection: str,
        *,
        select: str = "*",
        filters: Sequence[Filter] = (),
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = [("select", select), *self._filter_params(filters)]
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))

        response = self._request("GET", collection, params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise StorageError(f"Invalid JSON from table API for '{collection}'") from exc

        if not isinstance(rows, list):
            raise StorageError(f"Expected a list of rows for '{collection}', got {type(rows).__name__}")

        logger.debug("Fetched rows", collection=collection, rows=len(rows))
        return rows

    def count(self, collection: str, *, filters: Sequence[Filter] = ()) -> int:
        response = self._request(
            "HEAD",
            collection,
            params=[("select", "*"), *self._filter_params(filters)],
            headers={"Prefer": "count=exact"},
        )

        # Content-Range: 0-24/3573 or */0
        content_range = response.headers.get("content-range", "")
        _, _, total = content_range.rpartition("/")
        try:
            return int(total)
        except ValueError as exc:
            raise StorageError(f"Missing row count for '{collection}': {content_range!r}") from exc
