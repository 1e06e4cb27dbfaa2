from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from .base import Backend
from .errors import BackendError
from .types import AuthSession, Identity, NewRosterEntry, RosterEntry

LOG = logging.getLogger(__name__)

ME_FIELDS = ["id", "email", "first_name", "avatar", "collection_name", "role.name"]
ROSTER_FIELDS = ["id", "first_name", "email", "avatar", "role.name"]


def _auth(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _role_name(role: Any) -> Optional[str]:
    if isinstance(role, dict):
        return role.get("name")
    return None


class DirectusBackend(Backend):
    """Directus REST API. Display name lives in ``first_name``, logo in ``avatar``."""

    name = "directus"

    def _identity(self, data: Dict[str, Any]) -> Identity:
        return Identity(
            id=str(data["id"]),
            email=data.get("email"),
            display_name=data.get("first_name"),
            logo_ref=data.get("avatar"),
            role=_role_name(data.get("role")),
            orders_collection=data.get("collection_name"),
        )

    async def login(self, email: str, password: str) -> AuthSession:
        resp = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password, "mode": "json"}
        )
        data = resp.json()["data"]
        expires = data.get("expires")
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=int(expires) // 1000 if expires else None,
        )

    async def logout(self, token: str, refresh_token: Optional[str] = None) -> None:
        if not refresh_token:
            LOG.debug("directus logout without refresh token, nothing to revoke")
            return
        await self._request(
            "POST",
            "/auth/logout",
            json={"refresh_token": refresh_token, "mode": "json"},
            headers=_auth(token),
        )

    async def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        try:
            resp = await self._request(
                "GET", "/users/me", params={"fields": ",".join(ME_FIELDS)}, headers=_auth(token)
            )
        except BackendError as exc:
            if exc.status_code in (401, 403):
                return None
            raise
        data = resp.json().get("data")
        if not data:
            return None
        return self._identity(data)

    async def update_identity(
        self, token: str, *, display_name: Optional[str] = None, logo_ref: Optional[str] = None
    ) -> Identity:
        body: Dict[str, Any] = {}
        if display_name is not None:
            body["first_name"] = display_name
        if logo_ref is not None:
            body["avatar"] = logo_ref
        resp = await self._request(
            "PATCH",
            "/users/me",
            params={"fields": ",".join(ME_FIELDS)},
            json=body,
            headers=_auth(token),
        )
        return self._identity(resp.json()["data"])

    async def list_records(
        self,
        token: Optional[str],
        collection: str,
        *,
        filters: Optional[Dict[str, Any]] = None,
        sort: Optional[List[str]] = None,
        fields: Optional[List[str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if filters:
            params["filter"] = json.dumps(filters)
        if sort:
            params["sort"] = ",".join(sort)
        if fields:
            params["fields"] = ",".join(fields)
        # -1 asks for every row; the server default is 100
        params["limit"] = limit if limit is not None else -1
        resp = await self._request("GET", f"/items/{collection}", params=params, headers=_auth(token))
        return resp.json().get("data") or []

    async def create_record(self, token: str, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request("POST", f"/items/{collection}", json=data, headers=_auth(token))
        return resp.json().get("data") or {}

    async def update_record(
        self, token: str, collection: str, record_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        resp = await self._request(
            "PATCH", f"/items/{collection}/{record_id}", json=data, headers=_auth(token)
        )
        return resp.json().get("data") or {}

    async def delete_record(self, token: str, collection: str, record_id: str) -> None:
        await self._request("DELETE", f"/items/{collection}/{record_id}", headers=_auth(token))

    async def upload_file(
        self,
        token: str,
        data: bytes,
        filename: str,
        mime: str,
        *,
        title: Optional[str] = None,
        overwrite: bool = False,
    ) -> str:
        # every upload gets a fresh file id, so there is nothing to overwrite
        form = {"title": title or filename}
        resp = await self._request(
            "POST",
            "/files",
            data=form,
            files={"file": (filename, data, mime)},
            headers=_auth(token),
        )
        body = resp.json().get("data")
        if isinstance(body, list):
            body = body[0] if body else {}
        file_id = body.get("id") if isinstance(body, dict) else None
        if not file_id:
            raise BackendError(resp.status_code, "Upload returned no file id", body)
        return str(file_id)

    def file_url(self, ref: str) -> str:
        if ref.startswith(("http://", "https://")):
            return ref
        return f"{self.base_url}/assets/{ref}"

    async def list_roster(self, token: str) -> List[RosterEntry]:
        resp = await self._request(
            "GET",
            "/users",
            params={"fields": ",".join(ROSTER_FIELDS), "sort": "-date_created"},
            headers=_auth(token),
        )
        return [
            RosterEntry(
                id=str(u["id"]),
                email=u.get("email"),
                display_name=u.get("first_name"),
                role=_role_name(u.get("role")),
                logo_url=self.file_url(u["avatar"]) if u.get("avatar") else None,
            )
            for u in resp.json().get("data") or []
        ]

    async def resolve_role(self, token: str, role_name: str) -> str:
        resp = await self._request(
            "GET",
            "/roles",
            params={"filter": json.dumps({"name": {"_eq": role_name}}), "fields": "id,name"},
            headers=_auth(token),
        )
        roles = resp.json().get("data") or []
        if not roles:
            raise BackendError(404, f"Role '{role_name}' not found in Directus")
        return str(roles[0]["id"])

    async def create_identity(
        self, token: str, entry: NewRosterEntry, role_id: str, logo_ref: Optional[str] = None
    ) -> RosterEntry:
        body: Dict[str, Any] = {
            "email": entry.email,
            "password": entry.password,
            "role": role_id,
            "first_name": entry.display_name,
        }
        if logo_ref:
            body["avatar"] = logo_ref
        resp = await self._request("POST", "/users", json=body, headers=_auth(token))
        data = resp.json().get("data") or {}
        return RosterEntry(
            id=str(data.get("id", "")),
            email=entry.email,
            display_name=entry.display_name,
            role=entry.role,
            logo_url=self.file_url(logo_ref) if logo_ref else None,
        )

    async def delete_identity(self, token: str, identity_id: str) -> None:
        await self._request("DELETE", f"/users/{identity_id}", headers=_auth(token))
