"""Remote GraphQL execution against the cloud service."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from runwatch.config import CloudConfig
from runwatch.exceptions import RemoteQueryError
from runwatch.logging import get_logger

log = get_logger(__name__)


class RequestPolicy:
    """How a request may use the executor's response cache."""

    CACHE_FIRST = "cache-first"
    NETWORK_ONLY = "network-only"


@dataclass
class RemoteQueryRequest:
    """One GraphQL operation to run against the cloud service."""

    field_name: str
    operation_name: str
    operation: str
    variables: dict[str, Any] = field(default_factory=dict)
    request_policy: str = RequestPolicy.CACHE_FIRST
    # Arguments of the root field, used to key and invalidate cached responses.
    field_args: dict[str, Any] | None = None


@dataclass
class RemoteQueryResult:
    """Outcome of a remote query. Exactly one of data/error is normally set."""

    data: dict[str, Any] | None = None
    error: RemoteQueryError | None = None


class RemoteQueryExecutor(ABC):
    """Executes queries against the cloud and owns its response cache."""

    @abstractmethod
    async def execute_remote_graphql(self, request: RemoteQueryRequest) -> RemoteQueryResult:
        """Run a query. Failures are returned in ``error``, not raised."""
        pass

    @abstractmethod
    async def invalidate(
        self,
        typename: str,
        field_name: str,
        args: dict[str, Any] | None = None,
    ) -> None:
        """Drop cached data for ``typename.field_name(args)``."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


@dataclass
class _CacheEntry:
    field_name: str
    field_args: dict[str, Any] | None
    variables: dict[str, Any]
    data: dict[str, Any]


class CloudGraphQLClient(RemoteQueryExecutor):
    """httpx-backed GraphQL client with an in-process response cache."""

    def __init__(self, config: CloudConfig):
        self.api_url = config.api_url
        self._client = httpx.AsyncClient(
            timeout=config.timeout,
            headers={"Content-Type": "application/json", **config.headers},
        )
        self._cache: dict[str, _CacheEntry] = {}

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _cache_key(
        field_name: str,
        field_args: dict[str, Any] | None,
        variables: dict[str, Any] | None = None,
    ) -> str:
        # Variables are part of the key: one field can be selected with
        # different run numbers for the same slug.
        scope = {"args": field_args or {}, "variables": variables or {}}
        return f"{field_name}:{json.dumps(scope, sort_keys=True, default=str)}"

    def cached(
        self,
        field_name: str,
        field_args: dict[str, Any] | None = None,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        entry = self._cache.get(self._cache_key(field_name, field_args, variables))
        return entry.data if entry else None

    async def execute_remote_graphql(self, request: RemoteQueryRequest) -> RemoteQueryResult:
        key = self._cache_key(request.field_name, request.field_args, request.variables)
        if request.request_policy == RequestPolicy.CACHE_FIRST and key in self._cache:
            log.debug("graphql cache hit", field=request.field_name, operation=request.operation_name)
            return RemoteQueryResult(data=self._cache[key].data)

        payload = {
            "operationName": request.operation_name,
            "query": request.operation,
            "variables": request.variables,
        }
        try:
            response = await self._client.post(self.api_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            log.error("graphql request failed", operation=request.operation_name, status=e.response.status_code)
            return RemoteQueryResult(
                error=RemoteQueryError(f"HTTP error: {e}", status_code=e.response.status_code)
            )
        except httpx.HTTPError as e:
            log.error("graphql request failed", operation=request.operation_name, error=str(e))
            return RemoteQueryResult(error=RemoteQueryError(f"HTTP error: {e}"))
        except ValueError as e:
            log.error("graphql response is not JSON", operation=request.operation_name, error=str(e))
            return RemoteQueryResult(error=RemoteQueryError(f"Invalid JSON response: {e}"))

        if not isinstance(body, dict):
            return RemoteQueryResult(error=RemoteQueryError("GraphQL response is not an object"))

        errors = body.get("errors")
        if errors:
            messages = [
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in (errors if isinstance(errors, list) else [errors])
            ]
            log.warning("graphql errors", operation=request.operation_name, errors=messages)
            return RemoteQueryResult(
                data=body.get("data") if isinstance(body.get("data"), dict) else None,
                error=RemoteQueryError("; ".join(messages)),
            )

        data = body.get("data")
        if not isinstance(data, dict):
            return RemoteQueryResult(error=RemoteQueryError("GraphQL response has no data"))

        self._cache[key] = _CacheEntry(
            field_name=request.field_name,
            field_args=request.field_args,
            variables=request.variables,
            data=data,
        )
        return RemoteQueryResult(data=data)

    async def invalidate(
        self,
        typename: str,
        field_name: str,
        args: dict[str, Any] | None = None,
    ) -> None:
        if typename == "Query":
            stale = [
                key
                for key, entry in self._cache.items()
                if entry.field_name == field_name and (args is None or entry.field_args == args)
            ]
        else:
            entity_id = (args or {}).get("id")
            stale = [
                key
                for key, entry in self._cache.items()
                if _contains_entity(entry.data, typename, entity_id)
            ]
        for key in stale:
            del self._cache[key]
        log.debug("graphql cache invalidated", typename=typename, field=field_name, removed=len(stale))


def _contains_entity(value: Any, typename: str, entity_id: Any = None) -> bool:
    """True if ``value`` holds an object of ``typename`` (with ``entity_id``)."""
    if isinstance(value, dict):
        if value.get("__typename") == typename and (entity_id is None or value.get("id") == entity_id):
            return True
        return any(_contains_entity(item, typename, entity_id) for item in value.values())
    if isinstance(value, list):
        return any(_contains_entity(item, typename, entity_id) for item in value)
    return False
