"""
Record store clients.

The engine only needs create/update (and fetch, for edit mode); transport,
auth and error encoding stay behind this boundary. Every failure surfaces
as DispatchFailure.
"""

import copy
import itertools
from typing import Any, Dict, Optional, Protocol
import logging

import httpx

from .exceptions import DispatchFailure, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


class RecordStore(Protocol):
    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def update(self, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def fetch(self, record_id: Any) -> Dict[str, Any]:
        ...


class HttpRecordStore:
    """REST record store: POST to create, PATCH to update, GET to fetch."""

    def __init__(self, base_url: str, resource: str = "configs",
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.resource = resource.strip('/')
        self.timeout = httpx.Timeout(timeout) if timeout else DEFAULT_TIMEOUT
        self._transport = transport

    def _url(self, record_id: Any = None) -> str:
        url = f"{self.base_url}/{self.resource}"
        return f"{url}/{record_id}" if record_id is not None else url

    async def _request(self, operation: str, method: str, url: str,
                       payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, json=payload)
                response.raise_for_status()
                body = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.error(f"Record store {operation} rejected: {method} {url} -> {e.response.status_code}")
            raise DispatchFailure(operation, e, status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Record store {operation} failed: {method} {url}: {e}")
            raise DispatchFailure(operation, e) from e

        if not isinstance(body, dict):
            raise DispatchFailure(operation, message=f"Record store {operation} returned a non-object body")

        logger.info(f"Record store {operation} succeeded: {method} {url}")
        return body

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("create", "POST", self._url(), payload)

    async def update(self, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("update", "PATCH", self._url(record_id), payload)

    async def fetch(self, record_id: Any) -> Dict[str, Any]:
        return await self._request("fetch", "GET", self._url(record_id))


class InMemoryRecordStore:
    """Dictionary-backed store for local runs and tests."""

    def __init__(self, id_field: str = 'id'):
        self.id_field = id_field
        self.records: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        record_id = str(next(self._ids))
        record = {**copy.deepcopy(payload), self.id_field: record_id}
        self.records[record_id] = record
        logger.info(f"Created record {record_id}")
        return copy.deepcopy(record)

    async def update(self, record_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        key = str(record_id)
        if key not in self.records:
            raise DispatchFailure("update", NotFoundError("Record", record_id))
        record = {**copy.deepcopy(payload), self.id_field: key}
        self.records[key] = record
        logger.info(f"Updated record {key}")
        return copy.deepcopy(record)

    async def fetch(self, record_id: Any) -> Dict[str, Any]:
        key = str(record_id)
        if key not in self.records:
            raise DispatchFailure("fetch", NotFoundError("Record", record_id))
        return copy.deepcopy(self.records[key])
