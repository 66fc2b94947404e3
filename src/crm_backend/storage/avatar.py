from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.constants import DEFAULT_PROFILE_PICTURE
from ..core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "user-profiles"


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content_type: str
    data: bytes


def is_default_picture(url: Optional[str]) -> bool:
    return not url or DEFAULT_PROFILE_PICTURE.split(".")[0] in url


class AvatarStorage(Protocol):
    """External object storage for profile pictures; the core keeps only the URL."""

    def upload(self, image: UploadedImage) -> str:
        raise NotImplementedError

    def delete(self, url: str) -> None:
        raise NotImplementedError


class S3AvatarStorage(AvatarStorage):
    """S3-compatible storage (AWS, GCS HMAC, MinIO)."""

    def __init__(
        self,
        *,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self._bucket = bucket
        self._s3 = boto3.client("s3", region_name=region, endpoint_url=endpoint_url or None)
        if public_base_url:
            self._base_url = public_base_url.rstrip("/")
        elif endpoint_url:
            self._base_url = f"{endpoint_url.rstrip('/')}/{bucket}"
        else:
            self._base_url = f"https://{bucket}.s3.{region}.amazonaws.com"

    def _key_from_url(self, url: str) -> str:
        # ".../user-profiles/<name>.<ext>" -> "user-profiles/<name>.<ext>"
        parts = url.split("/")
        if AVATAR_FOLDER in parts:
            return "/".join(parts[parts.index(AVATAR_FOLDER):])
        return "/".join(parts[-2:])

    def upload(self, image: UploadedImage) -> str:
        ext = image.filename.rsplit(".", 1)[-1].lower() if "." in image.filename else "bin"
        key = f"{AVATAR_FOLDER}/{uuid.uuid4().hex}.{ext}"
        try:
            self._s3.put_object(Bucket=self._bucket, Key=key, Body=image.data, ContentType=image.content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error("Profile picture upload failed: %s", e)
            raise UpstreamError(f"Profile picture upload failed: {e}")
        return f"{self._base_url}/{key}"

    def delete(self, url: str) -> None:
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=self._key_from_url(url))
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"Profile picture delete failed: {e}")


class DisabledAvatarStorage(AvatarStorage):
    """Used when no bucket is configured: uploads are rejected, deletes are no-ops."""

    def upload(self, image: UploadedImage) -> str:
        raise UpstreamError("Profile picture storage is not configured")

    def delete(self, url: str) -> None:
        return None
