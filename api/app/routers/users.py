from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from api.app.backend import get_backend
from api.app.config import settings
from api.app.security import get_token, require_admin
from common.clients.base import Backend
from common.clients.types import NewRosterEntry, RosterEntry
from common.services.roster import LogoUpload, RosterView

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_admin)])


class RosterRow(RosterEntry):
    is_admin: bool


def get_roster(backend: Backend = Depends(get_backend)) -> RosterView:
    return RosterView(backend, max_logo_bytes=settings.max_logo_bytes, admin_marker=settings.admin_role_marker)


def _row(roster: RosterView, entry: RosterEntry) -> RosterRow:
    return RosterRow(**entry.model_dump(), is_admin=roster.is_admin(entry))


@router.get("", response_model=list[RosterRow])
async def list_users(
    token: Optional[str] = Depends(get_token),
    roster: RosterView = Depends(get_roster),
):
    return [_row(roster, e) for e in await roster.load(token)]


@router.post("", response_model=RosterRow, status_code=201)
async def create_user(
    email: str = Form(""),
    password: str = Form(""),
    display_name: str = Form(""),
    role: str = Form("User"),
    logo: UploadFile | None = File(None),
    token: Optional[str] = Depends(get_token),
    roster: RosterView = Depends(get_roster),
):
    upload = None
    if logo is not None and logo.filename:
        upload = LogoUpload(
            data=await logo.read(),
            filename=logo.filename,
            mime=logo.content_type or "",
        )
    entry = NewRosterEntry(email=email, password=password, display_name=display_name, role=role)
    created = await roster.create(token, entry, upload)
    return _row(roster, created)


class DeleteResult(BaseModel):
    status: str
    id: str


@router.delete("/{user_id}", response_model=DeleteResult)
async def delete_user(
    user_id: str,
    token: Optional[str] = Depends(get_token),
    roster: RosterView = Depends(get_roster),
):
    await roster.delete(token, user_id)
    return DeleteResult(status="ok", id=user_id)
