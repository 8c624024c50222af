"""
Storage abstraction for Supabase Storage (S3-compatible) and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from hapgyeokpan.errors import StoreError

S3_GATEWAY_SUFFIX = "/storage/v1/s3"


def public_object_base(supabase_url: str, bucket: str) -> str:
    """Base URL Supabase serves public bucket objects from."""
    return f"{supabase_url.rstrip('/')}/storage/v1/object/public/{bucket}"


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage/v1/object/public/attachments"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        if path in self.stored_objects:
            raise StoreError("The resource already exists")
        self.stored_objects[path] = (data, content_type)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client for a Supabase Storage bucket.
    """

    bucket: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    region: str = ""
    public_base_url: Optional[str] = None

    def __post_init__(self):
        # Supabase's S3 gateway expects path-style addressing.
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(str(exc)) from exc

    def public_url(self, path: str) -> str:
        base = (self.public_base_url or "").rstrip("/")
        if not base:
            endpoint = self.endpoint.rstrip("/")
            if endpoint.endswith(S3_GATEWAY_SUFFIX):
                base = public_object_base(endpoint[: -len(S3_GATEWAY_SUFFIX)], self.bucket)
            else:
                base = f"{endpoint}/{self.bucket}"
        return f"{base}/{path}"
