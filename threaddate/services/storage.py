from __future__ import annotations

import os

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

# ---------- S3-compatible object storage (tag images) ----------

CACHE_CONTROL = "max-age=3600"


class StorageNotConfigured(RuntimeError):
    pass


# what an upload or delete can raise; routers map these to 502
STORAGE_ERRORS = (BotoCoreError, ClientError, StorageNotConfigured)


def _required(name: str) -> str:
    v = os.getenv(name, "").strip()
    if not v:
        raise StorageNotConfigured(f"{name} is not set")
    return v


def bucket_name() -> str:
    return os.getenv("STORAGE_BUCKET", "tag-images").strip()


def public_base() -> str:
    return _required("STORAGE_PUBLIC_BASE").rstrip("/")


def _client():
    return boto3.client(
        "s3",
        region_name=os.getenv("STORAGE_REGION", "us-east-1"),
        endpoint_url=_required("STORAGE_ENDPOINT"),
        aws_access_key_id=_required("STORAGE_ACCESS_KEY_ID"),
        aws_secret_access_key=_required("STORAGE_SECRET_ACCESS_KEY"),
        config=Config(signature_version="s3v4"),
    )


def public_url(key: str) -> str:
    return f"{public_base()}/{key}"


def key_from_public_url(url: str) -> str | None:
    """Inverse of public_url. None when the URL does not point into our bucket."""
    prefix = public_base() + "/"
    if not url or not url.startswith(prefix):
        return None
    key = url[len(prefix):]
    return key or None


def upload_bytes(
    *,
    data: bytes,
    key: str,
    content_type: str,
) -> str:
    """
    Upload raw bytes under `key` and return its PUBLIC URL.
    Raises one of STORAGE_ERRORS; callers decide what the user sees.
    """
    _client().put_object(
        Bucket=bucket_name(),
        Key=key,
        Body=data,
        ACL="public-read",
        ContentType=content_type,
        CacheControl=CACHE_CONTROL,
    )
    return public_url(key)


def delete_object(key: str) -> None:
    _client().delete_object(Bucket=bucket_name(), Key=key)
