"""Tests for the credential -> upload -> link attachment flow."""
import json

import pytest

from talent_signup.core.messages import Messages
from talent_signup.services.attachments import AttachmentStage

from conftest import MB, make_file


class TestAttachmentPipeline:
    @pytest.mark.asyncio
    async def test_full_flow_in_order(self, services, pipeline):
        outcome = await pipeline.run("cv_file", make_file("cv.pdf", size=2 * MB), bearer_token="tok")

        assert outcome.ok
        assert outcome.linked
        assert outcome.reference == "https://store/cv/x.pdf"
        assert [services.route(r) for r in services.requests] == ["credential", "upload", "link"]
        link = services.calls("link")[0]
        assert link.headers["authorization"] == "Bearer tok"
        assert json.loads(link.content) == {"cv_file": "https://store/cv/x.pdf"}

    @pytest.mark.asyncio
    async def test_without_token_only_uploads(self, services, pipeline):
        outcome = await pipeline.run("cv_file", make_file())
        assert outcome.ok
        assert not outcome.linked
        assert outcome.reference == "https://store/cv/x.pdf"
        assert services.calls("link") == []

    @pytest.mark.asyncio
    async def test_too_large_fails_before_network(self, services, pipeline):
        outcome = await pipeline.run("cv_file", make_file(size=16 * MB), bearer_token="tok")
        assert outcome.failed_stage == AttachmentStage.VALIDATION
        assert outcome.error == "File too large. Max 15 MB."
        assert services.requests == []

    @pytest.mark.asyncio
    async def test_credential_failure_stops_flow(self, services, pipeline):
        services.fail("credential")
        outcome = await pipeline.run("cv_file", make_file(), bearer_token="tok")
        assert outcome.failed_stage == AttachmentStage.CREDENTIAL
        assert outcome.error == Messages.Upload.CREDENTIAL_FAILED
        assert services.calls("upload") == []

    @pytest.mark.asyncio
    async def test_upload_failure(self, services, pipeline):
        services.reply("upload", 500, {"error": "down"})
        outcome = await pipeline.run("cv_file", make_file(), bearer_token="tok")
        assert outcome.failed_stage == AttachmentStage.UPLOAD
        assert outcome.error == Messages.Upload.UPLOAD_FAILED
        assert outcome.reference is None
        assert services.calls("link") == []

    @pytest.mark.asyncio
    async def test_upload_without_url_is_malformed(self, services, pipeline):
        services.reply("upload", 200, {"public_id": "cv/x"})
        outcome = await pipeline.run("cv_file", make_file(), bearer_token="tok")
        assert outcome.failed_stage == AttachmentStage.UPLOAD
        assert outcome.error == Messages.Upload.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_link_failure_keeps_reference(self, services, pipeline):
        services.reply("link", 403, {})
        outcome = await pipeline.run("cv_file", make_file(), bearer_token="tok")
        assert outcome.failed_stage == AttachmentStage.LINK
        assert outcome.error == "Attachment link failed (403)"
        assert outcome.reference == "https://store/cv/x.pdf"
        assert not outcome.linked

    @pytest.mark.asyncio
    async def test_link_failure_uses_backend_detail(self, services, pipeline):
        services.reply("link", 401, {"detail": "Token expired"})
        outcome = await pipeline.run("cv_file", make_file(), bearer_token="tok")
        assert outcome.error == "Token expired"

    @pytest.mark.asyncio
    async def test_link_network_error(self, services, pipeline):
        services.fail("link")
        outcome = await pipeline.link("cv_file", "https://store/cv/x.pdf", "tok")
        assert outcome.failed_stage == AttachmentStage.LINK
        assert outcome.error == Messages.Common.NETWORK_ERROR
