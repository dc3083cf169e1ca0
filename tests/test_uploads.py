"""Tests for the upload credential client and the direct uploader."""
import hashlib

import httpx
import pytest

from talent_signup.services.api_client import APIHTTPError, APINetworkError, APIResponseError
from talent_signup.services.uploads import (
    FileTooLargeError,
    UploadCredential,
    issue_credential,
    sign_upload,
)

from conftest import CREDENTIAL, MB, make_file


def test_sign_upload_is_sha1_of_params_and_secret():
    expected = hashlib.sha1(b"folder=cv&timestamp=1700000000s3cret").hexdigest()
    assert sign_upload("cv", 1700000000, "s3cret") == expected


def test_issue_credential_truncates_timestamp():
    credential = issue_credential("k", "s3cret", "c", "cv", now=1700000000.9)
    assert credential.timestamp == 1700000000
    assert credential.signature == sign_upload("cv", 1700000000, "s3cret")
    assert credential.model_dump(by_alias=True)["apiKey"] == "k"


class TestCredentialClient:
    @pytest.mark.asyncio
    async def test_parses_camel_case_body(self, credential_client):
        credential = await credential_client.request_credential()
        assert credential == UploadCredential(
            timestamp=1700000000, signature="abc123", api_key="k", cloud_name="c", folder="cv"
        )

    @pytest.mark.asyncio
    async def test_missing_signature_is_malformed(self, services, credential_client):
        body = dict(CREDENTIAL)
        del body["signature"]
        services.reply("credential", 200, body)
        with pytest.raises(APIResponseError):
            await credential_client.request_credential()

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self, services, credential_client):
        services.reply("credential", 200, b"<html>")
        with pytest.raises(APIResponseError):
            await credential_client.request_credential()

    @pytest.mark.asyncio
    async def test_http_error(self, services, credential_client):
        services.reply("credential", 500, {"message": "signing disabled"})
        with pytest.raises(APIHTTPError) as exc:
            await credential_client.request_credential()
        assert exc.value.status_code == 500
        assert exc.value.detail == "signing disabled"

    @pytest.mark.asyncio
    async def test_network_error(self, services, credential_client):
        services.fail("credential")
        with pytest.raises(APINetworkError):
            await credential_client.request_credential()


class TestDirectUploader:
    @pytest.mark.asyncio
    async def test_upload_posts_signed_form(self, services, uploader):
        credential = UploadCredential.model_validate(CREDENTIAL)
        url = await uploader.upload(make_file("cv.pdf"), credential)

        assert url == "https://store/cv/x.pdf"
        request = services.calls("upload")[0]
        assert request.method == "POST"
        assert str(request.url) == "http://store.test/v1_1/c/auto/upload"
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="api_key"\r\n\r\nk\r\n' in body
        assert b'name="timestamp"\r\n\r\n1700000000\r\n' in body
        assert b'name="signature"\r\n\r\nabc123\r\n' in body
        assert b'name="folder"\r\n\r\ncv\r\n' in body
        assert b'filename="cv.pdf"' in body

    @pytest.mark.asyncio
    async def test_oversized_file_never_reaches_network(self, services, uploader):
        credential = UploadCredential.model_validate(CREDENTIAL)
        with pytest.raises(FileTooLargeError) as exc:
            await uploader.upload(make_file(size=16 * MB), credential)
        assert exc.value.max_mb == 15
        assert services.requests == []

    @pytest.mark.asyncio
    async def test_missing_secure_url(self, services, uploader):
        services.reply("upload", 200, {"public_id": "cv/x"})
        credential = UploadCredential.model_validate(CREDENTIAL)
        with pytest.raises(APIResponseError):
            await uploader.upload(make_file(), credential)

    @pytest.mark.asyncio
    async def test_store_rejection(self, services, uploader):
        services.reply("upload", 401, {"error": {"message": "Invalid Signature"}})
        credential = UploadCredential.model_validate(CREDENTIAL)
        with pytest.raises(APIHTTPError) as exc:
            await uploader.upload(make_file(), credential)
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, services, uploader):
        services.fail("upload", httpx.ReadTimeout("timed out"))
        credential = UploadCredential.model_validate(CREDENTIAL)
        with pytest.raises(APINetworkError):
            await uploader.upload(make_file(), credential)
