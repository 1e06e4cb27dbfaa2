from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from common.clients.base import Backend
from common.clients.types import NewRosterEntry, RosterEntry

from .gate import ADMIN_MARKER, is_admin_role
from .uploads import MAX_IMAGE_BYTES, ValidationFailed, require_fields, validate_image

LOG = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass
class LogoUpload:
    data: bytes
    filename: str
    mime: str


class RosterView:
    """Local copy of the tenant user list.

    The backend stays authoritative: ``load`` replaces the copy, while
    ``create`` and ``delete`` patch it only after the backend call succeeded.
    """

    def __init__(self, backend: Backend, *, max_logo_bytes: int = MAX_IMAGE_BYTES, admin_marker: str = ADMIN_MARKER) -> None:
        self.backend = backend
        self.max_logo_bytes = max_logo_bytes
        self.admin_marker = admin_marker
        self.entries: List[RosterEntry] = []

    def is_admin(self, entry: RosterEntry) -> bool:
        return is_admin_role(entry.role, self.admin_marker)

    async def load(self, token: str) -> List[RosterEntry]:
        self.entries = await self.backend.list_roster(token)
        return list(self.entries)

    async def create(self, token: str, entry: NewRosterEntry, logo: Optional[LogoUpload] = None) -> RosterEntry:
        require_fields(email=entry.email, password=entry.password, display_name=entry.display_name)
        if len(entry.password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
        if logo is not None:
            validate_image(logo.mime, len(logo.data), self.max_logo_bytes)

        logo_ref = None
        if logo is not None:
            logo_ref = await self.backend.upload_file(
                token, logo.data, logo.filename, logo.mime, title=f"Logo - {entry.display_name}"
            )

        role_id = await self.backend.resolve_role(token, entry.role)
        created = await self.backend.create_identity(token, entry, role_id, logo_ref=logo_ref)
        LOG.info("created roster entry %s with role %s", created.id, entry.role)

        self.entries.insert(0, created)
        return created

    async def delete(self, token: str, identity_id: str) -> List[RosterEntry]:
        await self.backend.delete_identity(token, identity_id)
        self.entries = [e for e in self.entries if e.id != identity_id]
        return list(self.entries)
