from typing import Any, Dict, Optional, Tuple
import logging

import httpx
from pydantic import BaseModel

from talent_signup.core.config import BACKEND_URL

logger = logging.getLogger(__name__)

class APIRequestError(Exception):
    """Base exception for API errors."""
    pass

class APIHTTPError(APIRequestError):
    """Non-2xx answer from an API."""
    def __init__(self, status_code: int, message: str, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

class APINetworkError(APIRequestError):
    """Network error (timeout, connection)."""
    pass

class APIResponseError(APIRequestError):
    """2xx answer whose body is not what the caller expects."""
    pass

class AuthSession(BaseModel):
    access_token: str
    user: Dict[str, Any] = {}
    user_type: str = "talent"

# Backend step endpoints that accept a reference for each file field.
LINK_ENDPOINTS: Dict[str, str] = {
    "portfolio_file": "/api/auth/signup/step3",
    "cv_file": "/api/auth/signup/step5",
}

FormFiles = Dict[str, Tuple[str, bytes, str]]

def error_detail(response: httpx.Response) -> Optional[str]:
    """Backend error text: `detail` first, then `message`."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    detail = body.get("detail") or body.get("message")
    if detail is None:
        return None
    return detail if isinstance(detail, str) else str(detail)

class AuthAPIClient:
    """Client for the auth backend: signup, login and attachment links."""
    def __init__(self, base_url: str = BACKEND_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = f"{base_url.rstrip('/')}/api/auth"
        self.backend_url = base_url.rstrip('/')
        self.timeout = httpx.Timeout(30.0, connect=5.0)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(http2=False, trust_env=False, timeout=self.timeout, transport=self.transport)

    async def signup(self, data: Dict[str, str], files: Optional[FormFiles] = None) -> Dict[str, Any]:
        """Unified signup: one multipart request with every stage's data."""
        async with self._client() as client:
            try:
                response = await client.post(f"{self.base_url}/signup", data=data, files=files or None)
                response.raise_for_status()
                logger.info(f"Signup accepted for {data.get('email')} ({response.status_code})")
                return response.json()
            except httpx.HTTPStatusError as e:
                detail = error_detail(e.response)
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=detail)
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
            except ValueError:
                return {}

    async def login(self, email: str, password: str, user_type: str = "talent") -> AuthSession:
        """Login; returns the bearer token and the user."""
        payload = {"email": email, "password": password, "user_type": user_type}
        async with self._client() as client:
            try:
                response = await client.post(f"{self.base_url}/login", json=payload)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPStatusError as e:
                detail = error_detail(e.response)
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=detail)
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
            except ValueError:
                raise APIResponseError("Login response is not JSON")
        if not isinstance(body, dict) or not body.get("access_token"):
            raise APIResponseError("Login response has no access_token")
        logger.info(f"Logged in {email} as {body.get('user_type') or user_type}")
        return AuthSession(
            access_token=body["access_token"],
            user=body.get("user") or {},
            user_type=body.get("user_type") or user_type,
        )

    async def me(self, bearer_token: str) -> Dict[str, Any]:
        """Current user's profile."""
        headers = {"Authorization": f"Bearer {bearer_token}"}
        async with self._client() as client:
            try:
                response = await client.get(f"{self.base_url}/me", headers=headers)
                response.raise_for_status()
                body = response.json()
            except httpx.HTTPStatusError as e:
                detail = error_detail(e.response)
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=detail)
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
            except ValueError:
                raise APIResponseError("Profile response is not JSON")
        if not isinstance(body, dict):
            raise APIResponseError("Profile response is not an object")
        return body

    async def link_attachment(self, field_name: str, reference: str, bearer_token: str) -> Dict[str, Any]:
        """Attach an uploaded file reference to the user's record."""
        path = LINK_ENDPOINTS.get(field_name)
        if path is None:
            raise ValueError(f"No link endpoint for field {field_name!r}")
        headers = {"Authorization": f"Bearer {bearer_token}"}
        async with self._client() as client:
            try:
                response = await client.put(f"{self.backend_url}{path}", json={field_name: reference}, headers=headers)
                response.raise_for_status()
                logger.info(f"Linked {field_name} -> {reference}")
            except httpx.HTTPStatusError as e:
                detail = error_detail(e.response)
                raise APIHTTPError(e.response.status_code, f"HTTP error: {e.response.text}", detail=detail)
            except httpx.RequestError as e:
                raise APINetworkError(f"Network error: {str(e)}")
        try:
            return response.json()
        except ValueError:
            return {}

auth_api_client = AuthAPIClient()
