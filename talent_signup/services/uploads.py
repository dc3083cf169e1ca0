import hashlib
import logging
import time
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from talent_signup.core.config import SIGNATURE_ENDPOINT_URL, UPLOAD_MAX_BYTES, UPLOAD_STORE_URL
from talent_signup.models.record import PendingFile
from talent_signup.services.api_client import (
    APIHTTPError,
    APINetworkError,
    APIResponseError,
    error_detail,
)

logger = logging.getLogger(__name__)

class LocalValidationError(Exception):
    """Input rejected before any network call."""
    pass

class FileTooLargeError(LocalValidationError):
    def __init__(self, size: int, max_bytes: int):
        self.size = size
        self.max_bytes = max_bytes
        super().__init__(f"File of {size} bytes exceeds the {max_bytes} bytes limit")

    @property
    def max_mb(self) -> int:
        return self.max_bytes // (1024 * 1024)

class UploadCredential(BaseModel):
    """Signed, single-use permission for one direct upload."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: int
    signature: str
    api_key: str = Field(alias="apiKey")
    cloud_name: str = Field(alias="cloudName")
    folder: str

def sign_upload(folder: str, timestamp: int, secret: str) -> str:
    """Hex SHA-1 over the signed params followed by the API secret."""
    payload = f"folder={folder}&timestamp={timestamp}{secret}"
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()

def issue_credential(
    api_key: str, api_secret: str, cloud_name: str, folder: str, now: Optional[float] = None
) -> UploadCredential:
    """What the signing endpoint computes: a credential bound to the current second."""
    timestamp = int(time.time() if now is None else now)
    return UploadCredential(
        timestamp=timestamp,
        signature=sign_upload(folder, timestamp, api_secret),
        api_key=api_key,
        cloud_name=cloud_name,
        folder=folder,
    )

class UploadCredentialClient:
    """Fetches upload signatures from the signing endpoint."""
    def __init__(self, url: str = SIGNATURE_ENDPOINT_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = httpx.Timeout(10.0, connect=5.0)
        self.transport = transport

    async def request_credential(self) -> UploadCredential:
        async with httpx.AsyncClient(http2=False, trust_env=False, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPStatusError as e:
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=error_detail(e.response))
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
            except ValueError:
                raise APIResponseError("Signature response is not JSON")
        try:
            credential = UploadCredential.model_validate(body)
        except ValidationError as e:
            raise APIResponseError(f"Malformed signature response: {e}")
        logger.info(f"Got upload credential for folder {credential.folder} at {credential.timestamp}")
        return credential

class DirectUploader:
    """Uploads files straight to the object store."""
    def __init__(
        self,
        store_url: str = UPLOAD_STORE_URL,
        max_bytes: int = UPLOAD_MAX_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store_url = store_url.rstrip('/')
        self.max_bytes = max_bytes
        self.timeout = httpx.Timeout(60.0, connect=5.0)
        self.transport = transport

    def check_size(self, file: PendingFile) -> None:
        if file.size > self.max_bytes:
            raise FileTooLargeError(file.size, self.max_bytes)

    async def upload(self, file: PendingFile, credential: UploadCredential) -> str:
        """Upload and return the durable URL."""
        self.check_size(file)
        url = f"{self.store_url}/{credential.cloud_name}/auto/upload"
        data = {
            "api_key": credential.api_key,
            "timestamp": str(credential.timestamp),
            "signature": credential.signature,
            "folder": credential.folder,
        }
        files = {"file": (file.filename, file.content, file.content_type)}
        async with httpx.AsyncClient(http2=False, trust_env=False, timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPStatusError as e:
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=error_detail(e.response))
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
            except ValueError:
                raise APIResponseError("Upload response is not JSON")
        secure_url = body.get("secure_url") if isinstance(body, dict) else None
        if not secure_url:
            raise APIResponseError("Upload response has no secure_url")
        logger.info(f"Uploaded {file.filename} ({file.size} bytes) -> {secure_url}")
        return secure_url

credential_client = UploadCredentialClient()
direct_uploader = DirectUploader()
