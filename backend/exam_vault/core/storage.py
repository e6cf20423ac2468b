"""
Object store gateway for uploaded PDFs (Supabase Storage REST API).

Two credential tiers are used: the anon key for uploads and the
service-role key for deletions.
"""
import logging
import re
import time
from functools import lru_cache
from typing import Optional, Protocol
from urllib.parse import quote

import httpx

from .config import (
    SUPABASE_URL,
    SUPABASE_ANON_KEY,
    SUPABASE_SERVICE_ROLE_KEY,
    STORAGE_BUCKET,
    STORAGE_TIMEOUT_SECONDS,
)
from .errors import UpstreamStorageFailure

logger = logging.getLogger(__name__)


class ObjectStoreError(UpstreamStorageFailure):
    pass


class ObjectStore(Protocol):
    def put(self, key: str, data: bytes, content_type: str = "application/pdf") -> str: ...

    def public_url(self, key: str) -> str: ...

    def delete(self, key: str) -> None: ...


def generate_object_key(file_name: str, now: Optional[float] = None) -> str:
    """``<epoch millis>-<file name with whitespace replaced by _>``"""
    millis = int((time.time() if now is None else now) * 1000)
    safe_name = re.sub(r"\s", "_", file_name.strip()) or "paper.pdf"
    safe_name = safe_name.replace("/", "_")
    return f"{millis}-{safe_name}"


class SupabaseObjectStore:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str,
        bucket: str = STORAGE_BUCKET,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.bucket = bucket
        self.client = client or httpx.Client(timeout=STORAGE_TIMEOUT_SECONDS)

    def _object_path(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{quote(self.bucket)}/{quote(key)}"

    @staticmethod
    def _headers(api_key: str) -> dict:
        return {"apikey": api_key, "Authorization": f"Bearer {api_key}"}

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{quote(self.bucket)}/{quote(key)}"

    def put(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        """Upload with the write-tier credential and return the public URL"""
        headers = self._headers(self.anon_key)
        headers.update({
            "Content-Type": content_type,
            "Cache-Control": "max-age=3600",
            "x-upsert": "false",
        })
        try:
            response = self.client.post(self._object_path(key), content=data, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise ObjectStoreError() from e
        if response.is_error:
            logger.error(f"Upload of {key} rejected: {response.status_code} {response.text}")
            raise ObjectStoreError()
        logger.info(f"Uploaded {key} ({len(data)} bytes) to bucket {self.bucket}")
        return self.public_url(key)

    def delete(self, key: str) -> None:
        """Delete with the service-role credential"""
        url = f"{self.base_url}/storage/v1/object/{quote(self.bucket)}"
        try:
            response = self.client.request(
                "DELETE", url, json={"prefixes": [key]}, headers=self._headers(self.service_role_key)
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ObjectStoreError(f"Delete of {key} failed: {e}") from e
        if response.is_error:
            raise ObjectStoreError(f"Delete of {key} rejected: {response.status_code} {response.text}")
        logger.info(f"Deleted {key} from bucket {self.bucket}")

    def close(self):
        self.client.close()


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """FastAPI dependency returning the configured object store"""
    return SupabaseObjectStore(
        base_url=SUPABASE_URL,
        anon_key=SUPABASE_ANON_KEY,
        service_role_key=SUPABASE_SERVICE_ROLE_KEY,
        bucket=STORAGE_BUCKET,
    )


def close_object_store():
    """Close the configured store's HTTP client if one was created"""
    if get_object_store.cache_info().currsize:
        store = get_object_store()
        close = getattr(store, "close", None)
        if close is not None:
            close()
        get_object_store.cache_clear()
