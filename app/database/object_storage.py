from supabase import Client
from app.config import settings
from app.config.catalog_config import UPLOAD_CACHE_SECONDS
from typing import List
from urllib.parse import urlparse
import logging
import os
import uuid

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Remote object storage call failed."""


def generate_object_key(filename: str) -> str:
    """Collision-free flat object key: uuid4 hex plus the original extension"""
    extension = os.path.splitext(filename or "")[1].lower()
    return f"{uuid.uuid4().hex}{extension}"


def key_from_public_url(url: str) -> str:
    """Object keys are flat, so the key is the last path segment of the URL"""
    path = urlparse(url).path if url else ""
    return path.rstrip("/").split("/")[-1]


class ObjectStorage:
    def __init__(self, supabase: Client, bucket_name: str = None):
        self.supabase = supabase
        self.bucket_name = bucket_name or settings.storage_bucket

    @property
    def bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload(self, path: str, content: bytes, content_type: str = "application/octet-stream", upsert: bool = False) -> str:
        """Upload bytes under path and return the path"""
        try:
            self.bucket.upload(
                path,
                content,
                file_options={
                    "content-type": content_type,
                    "cache-control": str(UPLOAD_CACHE_SECONDS),
                    "upsert": "true" if upsert else "false",
                }
            )
            logger.info(f"Uploaded {path} to bucket {self.bucket_name}")
            return path
        except Exception as e:
            logger.error(f"Failed to upload {path} to bucket {self.bucket_name}: {str(e)}")
            raise StorageError(str(e))

    def get_public_url(self, path: str) -> str:
        return self.bucket.get_public_url(path)

    def download(self, path: str) -> bytes:
        try:
            return self.bucket.download(path)
        except Exception as e:
            logger.error(f"Failed to download {path} from bucket {self.bucket_name}: {str(e)}")
            raise StorageError(str(e))

    def remove(self, paths: List[str]) -> None:
        if not paths:
            return
        try:
            self.bucket.remove(paths)
            logger.info(f"Removed {len(paths)} object(s) from bucket {self.bucket_name}")
        except Exception as e:
            logger.error(f"Failed to remove {paths} from bucket {self.bucket_name}: {str(e)}")
            raise StorageError(str(e))
