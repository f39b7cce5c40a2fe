"""
Object storage abstraction: S3-compatible buckets and an in-memory double.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError


@dataclass
class StoredObject:
    key: str
    body: bytes
    content_type: str = "application/octet-stream"
    content_disposition: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    etag: Optional[str] = None


class ObjectStorage(Protocol):
    """Defines the operations the API needs from object storage."""

    def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        content_disposition: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        ...

    def get(self, key: str) -> Optional[StoredObject]:
        ...

    def delete(self, key: str) -> None:
        ...


@dataclass
class InMemoryObjectStorage:
    """Test double and local-development backend."""

    objects: Dict[str, StoredObject] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def put(self, key, body, content_type, content_disposition=None, metadata=None) -> None:
        obj = StoredObject(
            key=key,
            body=bytes(body),
            content_type=content_type,
            content_disposition=content_disposition,
            metadata=dict(metadata or {}),
            etag=f'"{hashlib.md5(bytes(body)).hexdigest()}"',
        )
        with self._lock:
            self.objects[key] = obj

    def get(self, key: str) -> Optional[StoredObject]:
        with self._lock:
            return self.objects.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self.objects.pop(key, None)


@dataclass
class S3ObjectStorage:
    """
    S3-compatible bucket (AWS S3, Cloudflare R2, MinIO...).
    """

    bucket: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    def __post_init__(self):
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=Config(signature_version="s3v4"),
        )

    def put(self, key, body, content_type, content_disposition=None, metadata=None) -> None:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
            "Metadata": dict(metadata or {}),
        }
        if content_disposition:
            params["ContentDisposition"] = content_disposition
        self._client.put_object(**params)

    def get(self, key: str) -> Optional[StoredObject]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise
        return StoredObject(
            key=key,
            body=response["Body"].read(),
            content_type=response.get("ContentType") or "application/octet-stream",
            content_disposition=response.get("ContentDisposition"),
            metadata=response.get("Metadata") or {},
            etag=response.get("ETag"),
        )

    def delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=key)


def build_storage(settings) -> ObjectStorage:
    if settings.storage_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("VIANDAS_S3_BUCKET is required when storage_backend is 's3'")
        return S3ObjectStorage(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
        )
    return InMemoryObjectStorage()
