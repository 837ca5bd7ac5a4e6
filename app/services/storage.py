import logging
import re
from typing import Optional

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from app.utils.retry import call_with_retry

logger = logging.getLogger(__name__)

ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
# hosts the storage proxy is known to wrap behind its CDN
WRAPPED_URL = re.compile(r"https://drive\.google\.com/", re.IGNORECASE)


class StorageError(Exception):
    """Raised when a storage key cannot be resolved to a download URL."""


class TransientStorageError(StorageError):
    pass


class StorageBackend:
    def get_download_url(self, key: str, filename: Optional[str] = None) -> str:
        raise NotImplementedError


class R2Storage(StorageBackend):
    """Cloudflare R2 through the S3 API; keys resolve to presigned GET URLs."""

    def __init__(self, client, bucket: str, expires: int = 900):
        self.client = client
        self.bucket = bucket
        self.expires = expires

    @classmethod
    def from_settings(cls, settings) -> "R2Storage":
        client = boto3.client(
            "s3",
            endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
        )
        return cls(client, settings.r2_bucket_name, settings.download_url_ttl)

    def get_download_url(self, key: str, filename: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": normalize_key(key)}
        if filename:
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'

        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=self.expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not presign {key}: {e}") from e


class StorageProxy(StorageBackend):
    """
    HTTP storage proxy: GET v1/storage/downloadUrl?path=<key> with a bearer
    token returns {"url": "<time-bounded signed url>"}.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        max_retries: int = 3,
        base_delay: float = 0.5,
        timeout: int = 10,
        http=requests,
    ):
        if not base_url or not api_key:
            raise ValueError(
                "Storage proxy credentials missing: set STORAGE_PROXY_URL and STORAGE_PROXY_KEY"
            )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.timeout = timeout
        self.http = http

    @classmethod
    def from_settings(cls, settings) -> "StorageProxy":
        return cls(
            settings.storage_proxy_url,
            settings.storage_proxy_key,
            max_retries=settings.external_max_retries,
            base_delay=settings.external_retry_base_delay,
        )

    def _fetch(self, key: str) -> str:
        try:
            response = self.http.get(
                f"{self.base_url}/v1/storage/downloadUrl",
                params={"path": normalize_key(key)},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientStorageError(str(e)) from e

        if response.status_code >= 500:
            raise TransientStorageError(
                f"Storage proxy error ({response.status_code}): {response.text}"
            )
        if response.status_code >= 400:
            raise StorageError(
                f"Storage proxy rejected {key} ({response.status_code}): {response.text}"
            )

        url = response.json().get("url")
        if not url:
            raise StorageError(f"Storage proxy returned no url for {key}")
        return url

    def get_download_url(self, key: str, filename: Optional[str] = None) -> str:
        url = call_with_retry(
            lambda: self._fetch(key),
            retry_on=(TransientStorageError,),
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            label="Storage proxy download url",
        )

        unwrapped = unwrap_proxied_url(url)
        if unwrapped != url:
            logger.info(f"Unwrapped proxied download url for {key}")
        return unwrapped


def build_storage(settings) -> StorageBackend:
    if settings.storage_backend == "r2":
        return R2Storage.from_settings(settings)
    if settings.storage_backend == "proxy":
        return StorageProxy.from_settings(settings)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")


def normalize_key(key: str) -> str:
    return key.lstrip("/")


def is_absolute_url(reference: str) -> bool:
    return bool(ABSOLUTE_URL.match(reference))


def unwrap_proxied_url(url: str) -> str:
    """
    The storage proxy serves some externally hosted files as
    https://cdn.example/abc/https://drive.google.com/uc?id=1. Fetching the
    wrapper is denied by the CDN, so the Google Drive URL is returned instead.
    Only applied to proxy responses; drop once the proxy stops wrapping them.
    """
    match = WRAPPED_URL.search(url, 1)
    if match:
        return url[match.start():]
    return url


def resolve_file_url(
    storage: StorageBackend,
    reference: str,
    filename: Optional[str] = None,
) -> str:
    # already-hosted content
    if is_absolute_url(reference):
        return reference

    return storage.get_download_url(reference, filename)
