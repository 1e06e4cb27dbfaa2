from __future__ import annotations
import hashlib
from typing import Any, Dict, Optional

import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError

session = aioboto3.Session()


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def object_key(data: bytes, filename: str) -> str:
    return f"{hash_bytes(data)[:8]}/{filename}"


class LogoStorage:
    """Logo bucket behind an S3-compatible endpoint (Supabase Storage)."""

    def __init__(
        self,
        *,
        bucket: str,
        endpoint: str,
        region: str,
        access_key_id: Optional[str],
        secret_access_key: Optional[str],
        public_base_url: str,
    ) -> None:
        self.bucket = bucket
        self.endpoint = endpoint
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.public_base_url = public_base_url.rstrip("/")

    def _client(self) -> Any:
        return session.client(
            "s3",
            endpoint_url=self.endpoint,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=self.region,
            config=Config(s3={"addressing_style": "path"}),
        )

    async def ensure_bucket(self) -> None:
        async with self._client() as s3:
            try:
                await s3.head_bucket(Bucket=self.bucket)
            except ClientError as exc:
                error_code = exc.response.get("Error", {}).get("Code")
                if error_code not in {"404", "NoSuchBucket"}:
                    raise
                await s3.create_bucket(Bucket=self.bucket)

    async def head(self, key: str) -> Optional[Dict[str, Any]]:
        async with self._client() as s3:
            try:
                resp: Dict[str, Any] = await s3.head_object(Bucket=self.bucket, Key=key)
                return resp
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") in {"404", "NoSuchKey", "NotFound"}:
                    return None
                raise

    async def put(self, data: bytes, mime: str, filename: str, overwrite: bool = False) -> str:
        key = object_key(data, filename)
        # same bytes and name give the same key, so an existing object is already this file
        if not overwrite and await self.head(key) is not None:
            return key
        async with self._client() as s3:
            await s3.put_object(Body=data, Bucket=self.bucket, Key=key, ContentType=mime)
        return key

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"
