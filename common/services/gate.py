from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.clients.base import Backend
from common.clients.types import Identity

ADMIN_MARKER = "admin"


class GateStatus(str, Enum):
    OK = "ok"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class GateResult:
    status: GateStatus
    identity: Optional[Identity] = None

    @property
    def ok(self) -> bool:
        return self.status is GateStatus.OK


def is_admin_role(role: Optional[str], marker: str = ADMIN_MARKER) -> bool:
    return bool(role) and marker.lower() in role.lower()


async def check_access(
    backend: Backend,
    token: Optional[str],
    *,
    require_admin: bool = False,
    marker: str = ADMIN_MARKER,
) -> GateResult:
    identity = await backend.current_identity(token)
    if identity is None:
        return GateResult(GateStatus.UNAUTHENTICATED)
    if require_admin and not is_admin_role(identity.role, marker):
        return GateResult(GateStatus.FORBIDDEN, identity)
    return GateResult(GateStatus.OK, identity)
