import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from dotenv import load_dotenv


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv(ROOT / ".env")

from common.clients.base import Backend  # noqa: E402
from common.clients.errors import BackendError  # noqa: E402
from common.clients.types import AuthSession, Identity, NewRosterEntry, RosterEntry  # noqa: E402


class FakeBackend(Backend):
    """In-memory backend keyed by bearer token."""

    name = "fake"

    def __init__(self) -> None:
        self.base_url = "http://backend.test"
        self.identities: Dict[str, Identity] = {}
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.roster: List[RosterEntry] = []
        self.uploads: List[Dict[str, Any]] = []
        self.calls: List[str] = []
        self.queries: List[Dict[str, Any]] = []
        self.fail: Dict[str, BackendError] = {}

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail:
            raise self.fail[op]

    async def aclose(self) -> None:
        return None

    async def login(self, email, password):
        self._maybe_fail("login")
        for token, ident in self.identities.items():
            if ident.email == email and password == "secret":
                return AuthSession(access_token=token, refresh_token=f"r-{token}")
        raise BackendError(401, "Invalid credentials")

    async def logout(self, token, refresh_token=None):
        self._maybe_fail("logout")

    async def current_identity(self, token):
        self.calls.append("current_identity")
        if not token:
            return None
        return self.identities.get(token)

    async def update_identity(self, token, *, display_name=None, logo_ref=None):
        self._maybe_fail("update_identity")
        ident = self.identities[token]
        update = {}
        if display_name is not None:
            update["display_name"] = display_name
        if logo_ref is not None:
            update["logo_ref"] = logo_ref
        self.identities[token] = ident.model_copy(update=update)
        return self.identities[token]

    async def list_records(self, token, collection, *, filters=None, sort=None, fields=None, limit=None):
        self._maybe_fail("list_records")
        self.queries.append({"collection": collection, "filters": filters, "sort": sort, "limit": limit})
        rows = list(self.collections.get(collection, []))
        return rows[:limit] if limit is not None else rows

    async def create_record(self, token, collection, data):
        self._maybe_fail("create_record")
        self.collections.setdefault(collection, []).append(data)
        return data

    async def update_record(self, token, collection, record_id, data):
        self._maybe_fail("update_record")
        return data

    async def delete_record(self, token, collection, record_id):
        self._maybe_fail("delete_record")

    async def upload_file(self, token, data, filename, mime, *, title=None, overwrite=False):
        self._maybe_fail("upload_file")
        ref = f"file-{len(self.uploads) + 1}"
        self.uploads.append({"ref": ref, "filename": filename, "mime": mime, "title": title, "size": len(data)})
        return ref

    def file_url(self, ref):
        return f"{self.base_url}/assets/{ref}"

    async def list_roster(self, token):
        self._maybe_fail("list_roster")
        return list(self.roster)

    async def resolve_role(self, token, role_name):
        self._maybe_fail("resolve_role")
        return f"role-{role_name.lower()}"

    async def create_identity(self, token, entry: NewRosterEntry, role_id, logo_ref: Optional[str] = None):
        self._maybe_fail("create_identity")
        created = RosterEntry(
            id=f"u{len(self.roster) + 1}",
            email=entry.email,
            display_name=entry.display_name,
            role=entry.role,
            logo_url=self.file_url(logo_ref) if logo_ref else None,
        )
        self.roster.insert(0, created)
        return created

    async def delete_identity(self, token, identity_id):
        self._maybe_fail("delete_identity")
        self.roster = [e for e in self.roster if e.id != identity_id]


@pytest.fixture
def fake_backend() -> FakeBackend:
    backend = FakeBackend()
    backend.identities["admin-token"] = Identity(
        id="a1",
        email="admin@example.com",
        display_name="Pizzaria Central",
        logo_ref="logo-1",
        role="Administrator",
        orders_collection="pedidos_central",
    )
    backend.identities["user-token"] = Identity(
        id="u9",
        email="user@example.com",
        display_name=None,
        role="User",
        orders_collection=None,
    )
    return backend
