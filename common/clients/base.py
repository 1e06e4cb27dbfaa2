from __future__ import annotations

import abc
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import BackendError, raise_for_backend
from .types import AuthSession, Identity, NewRosterEntry, RosterEntry

LOG = logging.getLogger(__name__)


class Backend(abc.ABC):
    """Operations the dashboard needs from a hosted backend.

    ``current_identity`` returns None when the token is missing, expired or
    rejected; every other failure raises :class:`BackendError`.
    ``list_records`` without a ``limit`` returns every row of the collection.
    """

    name: str = "backend"

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def prepare(self) -> None:
        """Startup hook: create whatever the backend needs before serving."""

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self.http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            LOG.warning("%s %s %s failed: %s", self.name, method, url, exc)
            raise BackendError(503, f"{self.name} is unreachable") from exc
        raise_for_backend(resp)
        return resp

    # identity / session

    @abc.abstractmethod
    async def login(self, email: str, password: str) -> AuthSession: ...

    @abc.abstractmethod
    async def logout(self, token: str, refresh_token: Optional[str] = None) -> None: ...

    @abc.abstractmethod
    async def current_identity(self, token: Optional[str]) -> Optional[Identity]: ...

    @abc.abstractmethod
    async def update_identity(
        self, token: str, *, display_name: Optional[str] = None, logo_ref: Optional[str] = None
    ) -> Identity: ...

    # records

    @abc.abstractmethod
    async def list_records(
        self,
        token: Optional[str],
        collection: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        sort: Optional[List[str]] = None,
        fields: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]: ...

    @abc.abstractmethod
    async def create_record(self, token: str, collection: str, data: Dict[str, Any]) -> Dict[str, Any]: ...

    @abc.abstractmethod
    async def update_record(
        self, token: str, collection: str, record_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]: ...

    @abc.abstractmethod
    async def delete_record(self, token: str, collection: str, record_id: str) -> None: ...

    # files

    @abc.abstractmethod
    async def upload_file(
        self,
        token: str,
        data: bytes,
        filename: str,
        mime: str,
        *,
        title: Optional[str] = None,
        overwrite: bool = False,
    ) -> str: ...

    @abc.abstractmethod
    def file_url(self, ref: str) -> str: ...

    # roster

    @abc.abstractmethod
    async def list_roster(self, token: str) -> List[RosterEntry]: ...

    @abc.abstractmethod
    async def resolve_role(self, token: str, role_name: str) -> str: ...

    @abc.abstractmethod
    async def create_identity(
        self, token: str, entry: NewRosterEntry, role_id: str, logo_ref: Optional[str] = None
    ) -> RosterEntry: ...

    @abc.abstractmethod
    async def delete_identity(self, token: str, identity_id: str) -> None: ...
