import logging
from typing import Optional

from common.clients.base import Backend
from common.clients.errors import BackendError
from common.clients.types import DEFAULT_DISPLAY_NAME, DisplayProfile, Identity
from common.norm.records import first_present

from .uploads import MAX_IMAGE_BYTES, validate_image

LOG = logging.getLogger(__name__)


class ProfileService:
    def __init__(
        self,
        backend: Backend,
        *,
        public_collection: str = "crm_profiles",
        public_name_fields: Optional[list[str]] = None,
        max_logo_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self.backend = backend
        self.public_collection = public_collection
        self.public_name_fields = public_name_fields or ["nome_estabelecimento", "display_name"]
        self.max_logo_bytes = max_logo_bytes

    def profile_of(self, identity: Identity) -> DisplayProfile:
        return DisplayProfile(
            display_name=identity.display_name or DEFAULT_DISPLAY_NAME,
            logo_url=self.backend.file_url(identity.logo_ref) if identity.logo_ref else None,
            email=identity.email,
        )

    async def read(self, token: str) -> Optional[DisplayProfile]:
        identity = await self.backend.current_identity(token)
        if identity is None:
            return None
        return self.profile_of(identity)

    async def read_public(self) -> DisplayProfile:
        """Tenant-wide profile shown on the login page; the default name on any refusal."""
        try:
            rows = await self.backend.list_records(None, self.public_collection, limit=1)
        except BackendError as exc:
            LOG.info("public profile unavailable (%s): %s", exc.status_code, exc.message)
            return DisplayProfile()
        name = first_present(rows[0], self.public_name_fields) if rows else None
        return DisplayProfile(display_name=name or DEFAULT_DISPLAY_NAME)

    async def update(
        self, token: str, *, display_name: Optional[str] = None, logo_ref: Optional[str] = None
    ) -> DisplayProfile:
        identity = await self.backend.update_identity(token, display_name=display_name, logo_ref=logo_ref)
        return self.profile_of(identity)

    async def upload_logo(self, token: str, identity: Identity, data: bytes, filename: str, mime: str) -> DisplayProfile:
        validate_image(mime, len(data), self.max_logo_bytes)
        ref = await self.backend.upload_file(
            token,
            data,
            filename,
            mime,
            title=f"Logo - {identity.display_name or identity.id}",
        )
        return await self.update(token, logo_ref=ref)
