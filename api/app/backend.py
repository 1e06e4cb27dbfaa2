from fastapi import Request

from api.app.config import Settings
from common.clients.base import Backend
from common.clients.directus import DirectusBackend
from common.clients.supabase import SupabaseBackend
from common.storage.s3 import LogoStorage


def build_backend(settings: Settings) -> Backend:
    if settings.backend == "supabase":
        storage = None
        if settings.s3_endpoint:
            storage = LogoStorage(
                bucket=settings.supabase_logo_bucket,
                endpoint=settings.s3_endpoint,
                region=settings.s3_region,
                access_key_id=settings.aws_access_key_id,
                secret_access_key=settings.aws_secret_access_key,
                public_base_url=f"{settings.supabase_url.rstrip('/')}/storage/v1/object/public",
            )
        return SupabaseBackend(
            settings.supabase_url,
            settings.supabase_anon_key,
            service_role_key=settings.supabase_service_role_key,
            storage=storage,
            name_fields=settings.profile_name_fields,
            logo_fields=settings.profile_logo_fields,
            timeout=settings.http_timeout,
        )
    return DirectusBackend(settings.directus_url, timeout=settings.http_timeout)


def get_backend(request: Request) -> Backend:
    return request.app.state.backend
