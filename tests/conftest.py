"""
Shared fixtures: a fake signing endpoint, object store and auth backend
served through httpx.MockTransport, plus ready-made records and wizards.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from talent_signup.models.record import PendingFile, StageRecord
from talent_signup.services.api_client import AuthAPIClient
from talent_signup.services.attachments import AttachmentPipeline
from talent_signup.services.uploads import DirectUploader, UploadCredentialClient
from talent_signup.wizard.controller import WizardController

SIGNER_URL = "http://signer.test/api/upload-signature"
STORE_URL = "http://store.test/v1_1"
BACKEND_URL = "http://backend.test"

MB = 1024 * 1024

CREDENTIAL = {
    "timestamp": 1700000000,
    "signature": "abc123",
    "apiKey": "k",
    "cloudName": "c",
    "folder": "cv",
}

Reply = Union[Tuple[int, Any], Callable[[httpx.Request], httpx.Response], Exception]

class FakeServices:
    """One handler for every remote collaborator, with canned replies per route."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.replies: Dict[str, Reply] = {
            "credential": (200, CREDENTIAL),
            "upload": (200, {"secure_url": "https://store/cv/x.pdf", "public_id": "cv/x"}),
            "signup": (201, {"message": "Account created successfully!", "user": {"id": 1}, "files": {}}),
            "login": (200, {"access_token": "tok", "user": {"full_name": "Ada Lovelace"}, "user_type": "talent"}),
            "link": (200, {"ok": True}),
            "me": (200, {"id": 1, "full_name": "Ada Lovelace", "email": "ada@example.com", "user_type": "talent", "skills": ["Python"]}),
        }

    def route(self, request: httpx.Request) -> str:
        if request.url.host == "signer.test":
            return "credential"
        if request.url.host == "store.test":
            return "upload"
        path = request.url.path
        if path == "/api/auth/signup":
            return "signup"
        if path == "/api/auth/login":
            return "login"
        if path == "/api/auth/me":
            return "me"
        if path.startswith("/api/auth/signup/step"):
            return "link"
        return "unknown"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.get(self.route(request), (404, {"detail": "Not Found"}))
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        status, body = reply
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def reply(self, route: str, status: int, body: Any = None) -> None:
        self.replies[route] = (status, {} if body is None else body)

    def fail(self, route: str, error: Optional[Exception] = None) -> None:
        self.replies[route] = error or httpx.ConnectError("connection refused")

    def calls(self, route: str) -> List[httpx.Request]:
        return [r for r in self.requests if self.route(r) == route]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

@pytest.fixture
def services() -> FakeServices:
    return FakeServices()

@pytest.fixture
def api(services) -> AuthAPIClient:
    return AuthAPIClient(base_url=BACKEND_URL, transport=services.transport)

@pytest.fixture
def credential_client(services) -> UploadCredentialClient:
    return UploadCredentialClient(url=SIGNER_URL, transport=services.transport)

@pytest.fixture
def uploader(services) -> DirectUploader:
    return DirectUploader(store_url=STORE_URL, max_bytes=15 * MB, transport=services.transport)

@pytest.fixture
def pipeline(credential_client, uploader, api) -> AttachmentPipeline:
    return AttachmentPipeline(credentials=credential_client, uploader=uploader, api=api)

@pytest.fixture
def make_wizard(api, pipeline) -> Callable[..., WizardController]:
    def factory(**kwargs) -> WizardController:
        options = {
            "api": api,
            "attachments": pipeline,
            "strategies": {"portfolio_file": "inline", "cv_file": "signed_upload"},
            "stage_validation": False,
            "max_file_bytes": 15 * MB,
        }
        options.update(kwargs)
        return WizardController(**options)
    return factory

def make_file(name: str = "cv.pdf", size: int = 1024, content_type: str = "application/pdf") -> PendingFile:
    return PendingFile(filename=name, content=b"%" * size, content_type=content_type)

def fill_record(record: StageRecord) -> StageRecord:
    """Every stage filled with valid values."""
    record.update("full_name", "Ada Lovelace")
    record.update("date_of_birth", "1990-12-10")
    record.update("email", "ada@example.com")
    record.update("password", "analytical")
    record.update("mobile_number", "+442083661177")
    record.update("about_me", "Mathematician")
    record.update("ideal_job_industry", "Computing")
    record.update("ideal_job_title", "Programmer")
    record.update("experience_level", "senior")
    record.update("contract_type", "full-time")
    record.add_skill("Python")
    record.add_skill("SQL")
    record.set_time_slot("Flexible")
    record.toggle_day("Mon")
    record.toggle_day("Wed")
    record.update("portfolio_link", "https://ada.example.com")
    record.update_new_contact("full_name", "Charles Babbage")
    record.update_new_contact("email", "charles@example.com")
    record.update_new_contact("position", "Mentor")
    record.add_contact()
    record.update("ai_assessment_enabled", True)
    return record

@pytest.fixture
def filled_record() -> StageRecord:
    return fill_record(StageRecord())
