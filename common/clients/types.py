from pydantic import BaseModel
from typing import Optional

DEFAULT_DISPLAY_NAME = "Dashboard Delivery"


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class Identity(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    logo_ref: Optional[str] = None
    role: Optional[str] = None
    orders_collection: Optional[str] = None


class DisplayProfile(BaseModel):
    display_name: str = DEFAULT_DISPLAY_NAME
    logo_url: Optional[str] = None
    email: Optional[str] = None


class RosterEntry(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: Optional[str] = None
    logo_url: Optional[str] = None


class NewRosterEntry(BaseModel):
    email: str
    password: str
    display_name: str
    role: str = "User"
