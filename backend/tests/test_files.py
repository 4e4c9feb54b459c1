"""
Tests for staged file uploads.
"""

import base64
from unittest.mock import Mock

import pytest

from configurator import files
from configurator.files import FileUploadError


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class TestDecodeDataUrl:
    """Tests for data URL parsing."""

    def test_decode(self):
        assert files.decode_data_url(PNG_DATA_URL) == ("image/png", PNG_BYTES)

    def test_rejects_non_data_url(self):
        with pytest.raises(ValueError):
            files.decode_data_url("https://example.com/a.png")

    def test_rejects_non_base64(self):
        with pytest.raises(ValueError, match="base64"):
            files.decode_data_url("data:text/plain,hello")


class TestUploadFilename:
    def test_uses_numeric_product_id_and_extension(self):
        name = files.upload_filename("front", "Red", "gid://shopify/Product/42", "image/jpeg")

        assert name.startswith("front_Red_42_")
        assert name.endswith(".jpeg")


class TestCompleteStagedUpload:
    """Tests for registering staged uploads as Shopify files."""

    def test_content_type_by_mime(self, shopify_api):
        shopify_api.file_create.return_value = [{"id": "f1"}, {"id": "f2"}]

        out = files.complete_staged_upload([
            {"resourceUrl": "https://up/a", "mimeType": "image/png", "alt": "front"},
            {"resourceUrl": "https://up/b", "mimeType": "application/pdf"},
            {"mimeType": "image/png"},
        ])

        assert out == [{"id": "f1"}, {"id": "f2"}]
        shopify_api.file_create.assert_called_once_with([
            {"contentType": "IMAGE", "originalSource": "https://up/a", "alt": "front"},
            {"contentType": "FILE", "originalSource": "https://up/b"},
        ])

    def test_nothing_to_register(self, shopify_api):
        assert files.complete_staged_upload([]) == []
        shopify_api.file_create.assert_not_called()


class TestUploadDataUrl:
    """Tests for the stage, POST and register sequence."""

    def _stage(self, shopify_api, key="tmp/abc/front.png"):
        params = [{"name": "Content-Type", "value": "image/png"}]
        if key:
            params.append({"name": "key", "value": key})
        shopify_api.staged_uploads_create.return_value = {
            "url": "https://storage.example.com/bucket",
            "resourceUrl": "https://storage.example.com/resource",
            "parameters": params,
        }

    def test_success_uses_key_for_resource_url(self, shopify_api):
        self._stage(shopify_api)
        shopify_api.post_staged_file.return_value = Mock(ok=True, status_code=204)
        shopify_api.file_create.return_value = [{"id": "gid://shopify/MediaImage/9", "url": None}]

        out = files.upload_data_url(PNG_DATA_URL, "front.png", "image/png")

        assert out == {"id": "gid://shopify/MediaImage/9", "url": None}
        shopify_api.staged_uploads_create.assert_called_once_with("front.png", "image/png", len(PNG_BYTES))
        url, params, filename, blob, mime = shopify_api.post_staged_file.call_args.args
        assert url == "https://storage.example.com/bucket"
        assert params["key"] == "tmp/abc/front.png"
        assert blob == PNG_BYTES
        shopify_api.file_create.assert_called_once_with([{
            "contentType": "IMAGE",
            "originalSource": "https://storage.example.com/bucket/tmp/abc/front.png",
        }])

    def test_resource_url_without_key(self, shopify_api):
        self._stage(shopify_api, key=None)
        shopify_api.post_staged_file.return_value = Mock(ok=True, status_code=201)
        shopify_api.file_create.return_value = [{"id": "f1"}]

        files.upload_data_url(PNG_BYTES, "front.png", "image/png")

        source = shopify_api.file_create.call_args.args[0][0]["originalSource"]
        assert source == "https://storage.example.com/resource"

    def test_failed_post_raises_with_detail(self, shopify_api):
        self._stage(shopify_api)
        shopify_api.post_staged_file.return_value = Mock(ok=False, status_code=403, text="AccessDenied")

        with pytest.raises(FileUploadError) as exc:
            files.upload_data_url(PNG_DATA_URL, "front.png", "image/png")

        assert exc.value.detail == "AccessDenied"
        shopify_api.file_create.assert_not_called()

    def test_unregistered_file_raises(self, shopify_api):
        self._stage(shopify_api)
        shopify_api.post_staged_file.return_value = Mock(ok=True, status_code=204)
        shopify_api.file_create.return_value = []

        with pytest.raises(FileUploadError):
            files.upload_data_url(PNG_DATA_URL, "front.png", "image/png")

    def test_unsupported_input(self, shopify_api):
        with pytest.raises(ValueError):
            files.upload_data_url(12345, "front.png", "image/png")
        shopify_api.staged_uploads_create.assert_not_called()
