import io
import logging
import re
import uuid
from typing import Optional

from minio import Minio
from minio.error import S3Error

from teamauth.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def sanitize_filename(filename: str) -> str:
    name = (filename or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).strip("._")
    return name[:128] or "upload"


class StorageError(Exception):
    pass


class ObjectStorage:
    """Thin wrapper over an S3-compatible bucket (Cloudflare R2 in production)."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self._client: Optional[Minio] = None

    @property
    def client(self) -> Minio:
        if self._client is None:
            c = self.config
            endpoint = re.sub(r"^https?://", "", c.r2_endpoint).rstrip("/")
            self._client = Minio(
                endpoint,
                access_key=c.r2_access_key_id,
                secret_key=c.r2_secret_access_key,
                secure=not c.r2_endpoint.startswith("http://"),
                region=c.r2_region,
            )
        return self._client

    @property
    def public_url(self) -> str:
        if self.config.r2_public_url:
            return self.config.r2_public_url
        return f"{self.config.r2_endpoint.rstrip('/')}/{self.config.r2_bucket}"

    def key_for_url(self, url: Optional[str]) -> Optional[str]:
        """Object key for a URL we handed out, None for anything stored elsewhere."""
        prefix = self.public_url + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def upload(self, data: bytes, filename: str, key_prefix: str, content_type: Optional[str] = None) -> str:
        object_key = f"{key_prefix.strip('/')}/{uuid.uuid4().hex}-{sanitize_filename(filename)}"
        try:
            self.client.put_object(
                bucket_name=self.config.r2_bucket,
                object_name=object_key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream",
            )
        except S3Error as e:
            raise StorageError(f"upload of {object_key} failed: {e}") from e

        logger.info("Uploaded %s (%d bytes)", object_key, len(data))
        return f"{self.public_url}/{object_key}"

    def delete(self, key: str) -> None:
        try:
            self.client.remove_object(self.config.r2_bucket, key)
        except S3Error as e:
            raise StorageError(f"delete of {key} failed: {e}") from e
