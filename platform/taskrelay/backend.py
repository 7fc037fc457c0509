from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

import httpx

from .errors import ErrorKind
from .tasks import TaskPage

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    payload: T


@dataclass(frozen=True)
class Err:
    message: str
    kind: ErrorKind = ErrorKind.BACKEND_ERROR
    status_code: Optional[int] = None


BackendResult = Union[Ok[Any], Err]


def _body_preview(text: str, limit: int = 240) -> str:
    preview = text.strip().replace("\n", " ")
    if len(preview) > limit:
        preview = preview[:limit].rstrip() + "..."
    return preview


class TaskBackendClient:
    """Async wrapper around the todo backend's task endpoints.

    Every call returns ``Ok(payload)`` or ``Err(message)``; transport and HTTP
    failures are never raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> BackendResult:
        client = self._get_http_client()
        try:
            response = await client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Todo backend timed out for %s %s: %s", method, endpoint, exc)
            return Err(
                f"The task service did not answer within {self.timeout:g}s.",
                kind=ErrorKind.BACKEND_UNAVAILABLE,
            )
        except httpx.RequestError as exc:
            logger.warning("Todo backend unreachable for %s %s: %s", method, endpoint, exc)
            return Err(
                "The task service is unreachable right now.",
                kind=ErrorKind.BACKEND_UNAVAILABLE,
            )

        try:
            data: Any = response.json()
        except ValueError:
            data = response.text

        if not response.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            logger.warning(
                "Todo backend returned %s for %s %s: %s",
                response.status_code,
                method,
                endpoint,
                _body_preview(response.text),
            )
            return Err(
                str(message or f"Task service returned HTTP {response.status_code}."),
                kind=ErrorKind.BACKEND_ERROR,
                status_code=response.status_code,
            )

        if isinstance(data, dict) and data.get("error"):
            logger.warning("Todo backend reported an error for %s %s: %s", method, endpoint, data["error"])
            return Err(str(data["error"]), kind=ErrorKind.BACKEND_ERROR, status_code=response.status_code)

        return Ok(data)

    async def create_task(self, title: str, status: str, owner_id: int | str) -> BackendResult:
        body: Dict[str, Any] = {"Title": title, "Status": status, "Discordid": str(owner_id)}
        return await self._request("POST", "/task/create", json=body)

    async def list_tasks(self, owner_id: int | str, page: int, limit: int) -> BackendResult:
        """Fetch one page of the user's tasks as ``Ok(TaskPage)``."""
        params = {"discord_id": str(owner_id), "page": page, "limit": limit}
        result = await self._request("GET", "/task/user", params=params)
        if isinstance(result, Err):
            return result
        if not isinstance(result.payload, dict):
            return Err("The task service sent an unexpected list response.")
        try:
            return Ok(TaskPage.from_payload(result.payload))
        except ValueError as exc:
            logger.warning("Malformed task list from backend: %s", exc)
            return Err("The task service sent an unexpected list response.")

    async def update_task(
        self,
        task_id: str,
        title: str,
        status: str,
        owner_id: int | str,
    ) -> BackendResult:
        body: Dict[str, Any] = {"Title": title, "Status": status, "DiscordID": str(owner_id)}
        return await self._request("PUT", f"/task/edit/{task_id}", json=body)

    async def delete_task(self, task_id: str, owner_id: int | str) -> BackendResult:
        return await self._request(
            "DELETE",
            f"/task/delete/{task_id}",
            params={"discord_id": str(owner_id)},
        )
