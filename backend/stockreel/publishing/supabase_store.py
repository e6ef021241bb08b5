"""
Supabase-backed VideoStore.

Videos and thumbnails share one storage bucket; the catalog is a table.
A signed URL is preferred (works for private buckets) with the public URL
as fallback.
"""

import logging
from typing import Any, Dict, Optional

from supabase import Client, create_client

from ..errors import UploadError
from .models import StoredObject, UploadPayload, VideoAssetRecord
from .storage import THUMBNAIL_PREFIX, VIDEO_PREFIX, VideoStore, object_key

logger = logging.getLogger(__name__)


DEFAULT_BUCKET = "video-assets"
DEFAULT_TABLE = "video_assets"

# 7 days
SIGNED_URL_TTL_SECONDS = 60 * 60 * 24 * 7


class SupabaseVideoStore(VideoStore):
    """
    Storage bucket + catalog table on Supabase.

    Usage:
        store = SupabaseVideoStore.from_credentials(url, key)
    """

    def __init__(
        self,
        client: Client,
        bucket: str = DEFAULT_BUCKET,
        table: str = DEFAULT_TABLE,
        signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
    ):
        self.client = client
        self.bucket = bucket
        self.table = table
        self.signed_url_ttl = signed_url_ttl

    @classmethod
    def from_credentials(
        cls,
        url: Optional[str],
        key: Optional[str],
        bucket: str = DEFAULT_BUCKET,
        table: str = DEFAULT_TABLE,
    ) -> "SupabaseVideoStore":
        """
        Create a client from URL and key.

        Raises:
            UploadError: If either credential is missing
        """
        if not url or not key:
            raise UploadError("connect", "SUPABASE_URL and SUPABASE_KEY required")
        return cls(create_client(url, key), bucket=bucket, table=table)

    def upload_video(self, payload: UploadPayload, category: str) -> StoredObject:
        return self._upload("upload_video", VIDEO_PREFIX, payload, category)

    def upload_thumbnail(self, payload: UploadPayload, category: str) -> StoredObject:
        return self._upload("upload_thumbnail", THUMBNAIL_PREFIX, payload, category)

    def create_video_asset(self, record: VideoAssetRecord) -> Dict[str, Any]:
        row = {**record.to_row(), "download_count": 0}
        try:
            response = self.client.table(self.table).insert(row).execute()
        except Exception as e:
            raise UploadError("create_video_asset", str(e)) from e

        data = getattr(response, "data", None) or []
        return data[0] if data else row

    def delete_object(self, path: str) -> None:
        try:
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            raise UploadError("delete_object", str(e)) from e

    def _upload(self, operation: str, prefix: str, payload: UploadPayload, category: str) -> StoredObject:
        path = object_key(prefix, category, payload)
        bucket = self.client.storage.from_(self.bucket)

        try:
            bucket.upload(
                path=path,
                file=payload.data,
                file_options={"content-type": payload.content_type},
            )
        except Exception as e:
            raise UploadError(operation, str(e)) from e

        logger.info(f"[Supabase] Uploaded {payload.size} bytes to {self.bucket}/{path}")
        return StoredObject(path=path, url=self._url_for(path))

    def _url_for(self, path: str) -> str:
        bucket = self.client.storage.from_(self.bucket)
        try:
            signed = bucket.create_signed_url(path, self.signed_url_ttl)
            url = signed.get("signedURL") or signed.get("signedUrl")
            if url:
                return url
        except Exception as e:
            logger.debug(f"[Supabase] Signed URL unavailable for {path}: {e}")
        return bucket.get_public_url(path)
