"""Signed-upload attachment flow.

The flow runs in a fixed order: fetch a credential, upload the file straight
to the object store, then (when the caller holds a bearer token) link the
returned URL to the user's record. The first failing step ends the run; the
result says which step failed and carries a message fit for the user.

A link failure leaves the uploaded object in the store. Nothing deletes it,
since the store-side delete credentials are not available to this client.
"""
import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from talent_signup.core.messages import Messages
from talent_signup.models.record import PendingFile
from talent_signup.services.api_client import (
    APIHTTPError,
    APINetworkError,
    APIRequestError,
    APIResponseError,
    AuthAPIClient,
    auth_api_client,
)
from talent_signup.services.uploads import (
    DirectUploader,
    FileTooLargeError,
    UploadCredentialClient,
    credential_client,
    direct_uploader,
)

logger = logging.getLogger(__name__)

class AttachmentStage(str, Enum):
    VALIDATION = "validation"
    CREDENTIAL = "credential"
    UPLOAD = "upload"
    LINK = "link"

class AttachmentOutcome(BaseModel):
    field: str
    reference: Optional[str] = None
    linked: bool = False
    failed_stage: Optional[AttachmentStage] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed_stage is None

class AttachmentPipeline:
    def __init__(
        self,
        credentials: Optional[UploadCredentialClient] = None,
        uploader: Optional[DirectUploader] = None,
        api: Optional[AuthAPIClient] = None,
    ):
        self.credentials = credentials or credential_client
        self.uploader = uploader or direct_uploader
        self.api = api or auth_api_client

    async def run(self, field: str, file: PendingFile, bearer_token: Optional[str] = None) -> AttachmentOutcome:
        """Credential -> upload -> link (link only with a token)."""
        try:
            self.uploader.check_size(file)
        except FileTooLargeError as e:
            logger.info(f"Rejected {field} locally: {e}")
            return AttachmentOutcome(
                field=field,
                failed_stage=AttachmentStage.VALIDATION,
                error=Messages.Upload.FILE_TOO_LARGE.format(max_mb=e.max_mb),
            )

        try:
            credential = await self.credentials.request_credential()
        except APIRequestError as e:
            logger.error(f"Upload credential request failed for {field}: {e}")
            return AttachmentOutcome(field=field, failed_stage=AttachmentStage.CREDENTIAL, error=Messages.Upload.CREDENTIAL_FAILED)

        try:
            reference = await self.uploader.upload(file, credential)
        except APIResponseError as e:
            logger.error(f"Malformed upload response for {field}: {e}")
            return AttachmentOutcome(field=field, failed_stage=AttachmentStage.UPLOAD, error=Messages.Upload.MALFORMED_RESPONSE)
        except APIRequestError as e:
            logger.error(f"Upload failed for {field}: {e}")
            return AttachmentOutcome(field=field, failed_stage=AttachmentStage.UPLOAD, error=Messages.Upload.UPLOAD_FAILED)

        if bearer_token is None:
            return AttachmentOutcome(field=field, reference=reference)
        return await self.link(field, reference, bearer_token)

    async def link(self, field: str, reference: str, bearer_token: str) -> AttachmentOutcome:
        try:
            await self.api.link_attachment(field, reference, bearer_token)
        except APIHTTPError as e:
            logger.error(f"Linking {field} failed with {e.status_code}: {e}")
            error = e.detail or Messages.Upload.LINK_FAILED.format(status=e.status_code)
            return AttachmentOutcome(field=field, reference=reference, failed_stage=AttachmentStage.LINK, error=error)
        except APINetworkError as e:
            logger.error(f"Linking {field} failed: {e}")
            return AttachmentOutcome(field=field, reference=reference, failed_stage=AttachmentStage.LINK, error=Messages.Common.NETWORK_ERROR)
        return AttachmentOutcome(field=field, reference=reference, linked=True)
