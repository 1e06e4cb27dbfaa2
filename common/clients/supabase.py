from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from common.norm.records import first_present
from common.norm.status import fold
from common.storage.s3 import LogoStorage

from .base import Backend
from .errors import BackendError
from .types import AuthSession, Identity, NewRosterEntry, RosterEntry

LOG = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
ROLES_TABLE = "user_roles"
ROLE_IDS = ("admin", "user")
PAGE_SIZE = 1000

# directus-style operators accepted by list_records, mapped to PostgREST ones
FILTER_OPERATORS = {
    "_eq": "eq",
    "_neq": "neq",
    "_gt": "gt",
    "_gte": "gte",
    "_lt": "lt",
    "_lte": "lte",
}


def _order_param(sort: List[str]) -> str:
    parts = []
    for field in sort:
        if field.startswith("-"):
            parts.append(f"{field[1:]}.desc")
        else:
            parts.append(f"{field}.asc")
    return ",".join(parts)


def _filter_params(filters: Dict[str, Any]) -> Dict[str, str]:
    params = {}
    for field, cond in filters.items():
        if isinstance(cond, dict):
            for op, value in cond.items():
                if op not in FILTER_OPERATORS:
                    raise ValueError(f"Unsupported filter operator: {op}")
                params[field] = f"{FILTER_OPERATORS[op]}.{value}"
        else:
            params[field] = f"eq.{cond}"
    return params


def _storage_error(exc: Exception, action: str) -> BackendError:
    if isinstance(exc, ClientError):
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        LOG.warning("%s failed: %s", action, message)
        return BackendError(502, message)
    LOG.warning("%s failed: %s", action, exc)
    return BackendError(503, f"Storage is unreachable: {exc}")


class SupabaseBackend(Backend):
    """Supabase: GoTrue for identities, PostgREST for records, S3 endpoint for logos.

    Display profile lives in the ``profiles`` table and roles in the
    ``user_roles`` join table. Roster operations need the service-role key.
    """

    name = "supabase"

    def __init__(
        self,
        base_url: str,
        anon_key: Optional[str],
        *,
        service_role_key: Optional[str] = None,
        storage: Optional[LogoStorage] = None,
        name_fields: Optional[List[str]] = None,
        logo_fields: Optional[List[str]] = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.anon_key = anon_key or ""
        self.service_role_key = service_role_key
        self.storage = storage
        self.name_fields = name_fields or ["nome_estabelecimento", "display_name"]
        self.logo_fields = logo_fields or ["logo_url", "logo"]

    async def prepare(self) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.ensure_bucket()
        except (ClientError, BotoCoreError) as exc:
            raise _storage_error(exc, f"creating bucket {self.storage.bucket}") from exc

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        return {"apikey": self.anon_key, "Authorization": f"Bearer {token or self.anon_key}"}

    def _admin_headers(self) -> Dict[str, str]:
        if not self.service_role_key:
            raise BackendError(503, "Supabase service role key is not configured")
        return {"apikey": self.service_role_key, "Authorization": f"Bearer {self.service_role_key}"}

    async def _profile_row(self, headers: Dict[str, str], user_id: str) -> Dict[str, Any]:
        resp = await self._request(
            "GET",
            f"/rest/v1/{PROFILES_TABLE}",
            params={"select": "*", "id": f"eq.{user_id}"},
            headers=headers,
        )
        rows = resp.json()
        return rows[0] if rows else {}

    async def _role_of(self, headers: Dict[str, str], user_id: str) -> Optional[str]:
        # ascending order puts "admin" ahead of "user" when both are assigned
        resp = await self._request(
            "GET",
            f"/rest/v1/{ROLES_TABLE}",
            params={"select": "role", "user_id": f"eq.{user_id}", "order": "role.asc"},
            headers=headers,
        )
        rows = resp.json()
        return rows[0].get("role") if rows else None

    async def login(self, email: str, password: str) -> AuthSession:
        resp = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers={"apikey": self.anon_key},
        )
        data = resp.json()
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
        )

    async def logout(self, token: str, refresh_token: Optional[str] = None) -> None:
        await self._request("POST", "/auth/v1/logout", headers=self._headers(token))

    async def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        headers = self._headers(token)
        try:
            resp = await self._request("GET", "/auth/v1/user", headers=headers)
        except BackendError as exc:
            if exc.status_code in (401, 403):
                return None
            raise
        user = resp.json()
        if not user or not user.get("id"):
            return None

        user_id = str(user["id"])
        metadata = user.get("user_metadata") or {}
        profile = await self._profile_row(headers, user_id)
        return Identity(
            id=user_id,
            email=user.get("email"),
            display_name=first_present(profile, self.name_fields) or metadata.get("nome_estabelecimento"),
            logo_ref=first_present(profile, self.logo_fields),
            role=await self._role_of(headers, user_id),
            orders_collection=metadata.get("collection_name"),
        )

    async def update_identity(
        self, token: str, *, display_name: Optional[str] = None, logo_ref: Optional[str] = None
    ) -> Identity:
        identity = await self.current_identity(token)
        if identity is None:
            raise BackendError(401, "Session expired")

        body: Dict[str, Any] = {}
        if display_name is not None:
            body[self.name_fields[0]] = display_name
        if logo_ref is not None:
            body[self.logo_fields[0]] = logo_ref
        if body:
            await self._request(
                "PATCH",
                f"/rest/v1/{PROFILES_TABLE}",
                params={"id": f"eq.{identity.id}"},
                json=body,
                headers={**self._headers(token), "Prefer": "return=representation"},
            )
        return identity.model_copy(
            update={k: v for k, v in (("display_name", display_name), ("logo_ref", logo_ref)) if v is not None}
        )

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
        params: Dict[str, Any] = {"select": ",".join(fields) if fields else "*"}
        if filters:
            params.update(_filter_params(filters))
        if sort:
            params["order"] = _order_param(sort)
        headers = self._headers(token)
        if limit is not None:
            params["limit"] = limit
            resp = await self._request("GET", f"/rest/v1/{collection}", params=params, headers=headers)
            return resp.json() or []

        # PostgREST truncates at its max-rows setting, so walk pages until one comes back empty
        rows: List[Dict[str, Any]] = []
        while True:
            page_params = {**params, "limit": PAGE_SIZE, "offset": len(rows)}
            resp = await self._request("GET", f"/rest/v1/{collection}", params=page_params, headers=headers)
            page = resp.json() or []
            if not page:
                return rows
            rows.extend(page)

    async def create_record(self, token: str, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._request(
            "POST",
            f"/rest/v1/{collection}",
            json=data,
            headers={**self._headers(token), "Prefer": "return=representation"},
        )
        rows = resp.json()
        return rows[0] if rows else {}

    async def update_record(
        self, token: str, collection: str, record_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        resp = await self._request(
            "PATCH",
            f"/rest/v1/{collection}",
            params={"id": f"eq.{record_id}"},
            json=data,
            headers={**self._headers(token), "Prefer": "return=representation"},
        )
        rows = resp.json()
        return rows[0] if rows else {}

    async def delete_record(self, token: str, collection: str, record_id: str) -> None:
        await self._request(
            "DELETE",
            f"/rest/v1/{collection}",
            params={"id": f"eq.{record_id}"},
            headers=self._headers(token),
        )

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
        if self.storage is None:
            raise BackendError(503, "Supabase storage is not configured")
        try:
            key = await self.storage.put(data=data, mime=mime, filename=filename, overwrite=overwrite)
        except (ClientError, BotoCoreError) as exc:
            raise _storage_error(exc, f"logo upload of {filename}") from exc
        return self.storage.public_url(key)

    def file_url(self, ref: str) -> str:
        if ref.startswith(("http://", "https://")):
            return ref
        if self.storage is not None:
            return self.storage.public_url(ref)
        return f"{self.base_url}/storage/v1/object/public/{ref}"

    async def list_roster(self, token: str) -> List[RosterEntry]:
        headers = self._admin_headers()
        users_resp = await self._request("GET", "/auth/v1/admin/users", headers=headers)
        users = users_resp.json().get("users") or []

        roles_resp = await self._request(
            "GET",
            f"/rest/v1/{ROLES_TABLE}",
            params={"select": "user_id,role", "order": "role.asc"},
            headers=headers,
        )
        roles: Dict[str, str] = {}
        for row in roles_resp.json():
            roles.setdefault(str(row["user_id"]), row.get("role"))

        profiles_resp = await self._request(
            "GET", f"/rest/v1/{PROFILES_TABLE}", params={"select": "*"}, headers=headers
        )
        profiles = {str(p["id"]): p for p in profiles_resp.json()}

        users = sorted(users, key=lambda u: u.get("created_at") or "", reverse=True)
        entries = []
        for u in users:
            uid = str(u["id"])
            profile = profiles.get(uid, {})
            logo = first_present(profile, self.logo_fields)
            entries.append(
                RosterEntry(
                    id=uid,
                    email=u.get("email"),
                    display_name=first_present(profile, self.name_fields)
                    or (u.get("user_metadata") or {}).get("nome_estabelecimento"),
                    role=roles.get(uid),
                    logo_url=self.file_url(logo) if logo else None,
                )
            )
        return entries

    async def resolve_role(self, token: str, role_name: str) -> str:
        name = fold(role_name)
        if "admin" in name:
            return "admin"
        if name in ("user", "usuario"):
            return "user"
        raise BackendError(404, f"Role '{role_name}' not found; expected one of {', '.join(ROLE_IDS)}")

    async def create_identity(
        self, token: str, entry: NewRosterEntry, role_id: str, logo_ref: Optional[str] = None
    ) -> RosterEntry:
        headers = self._admin_headers()
        resp = await self._request(
            "POST",
            "/auth/v1/admin/users",
            json={
                "email": entry.email,
                "password": entry.password,
                "email_confirm": True,
                "user_metadata": {"nome_estabelecimento": entry.display_name},
            },
            headers=headers,
        )
        user = resp.json()
        if not user.get("id"):
            raise BackendError(resp.status_code, "Error creating user", user)
        user_id = str(user["id"])

        if logo_ref:
            await self._request(
                "PATCH",
                f"/rest/v1/{PROFILES_TABLE}",
                params={"id": f"eq.{user_id}"},
                json={self.logo_fields[0]: logo_ref},
                headers=headers,
            )

        try:
            await self._request(
                "POST",
                f"/rest/v1/{ROLES_TABLE}",
                json={"user_id": user_id, "role": role_id},
                headers=headers,
            )
        except BackendError:
            LOG.error("role assignment failed for new user %s; the user was not removed", user_id)
            raise

        return RosterEntry(
            id=user_id,
            email=user.get("email") or entry.email,
            display_name=entry.display_name,
            role=role_id,
            logo_url=self.file_url(logo_ref) if logo_ref else None,
        )

    async def delete_identity(self, token: str, identity_id: str) -> None:
        await self._request("DELETE", f"/auth/v1/admin/users/{identity_id}", headers=self._admin_headers())
