import base64
import binascii
import logging
import time
from typing import Union

from configurator.integrations import shopify_client as shopify

log = logging.getLogger(__name__)


class FileUploadError(RuntimeError):
    def __init__(self, message: str, detail: str = ""):
        self.detail = detail
        super().__init__(message)


def decode_data_url(text: str) -> tuple[str, bytes]:
    """Split `data:<mime>;base64,<payload>` into (mime, bytes)."""
    if not isinstance(text, str) or not text.startswith("data:") or "," not in text:
        raise ValueError("Unsupported data URL input")
    header, payload = text.split(",", 1)
    meta = header[5:]
    mime = meta.split(";", 1)[0] or "application/octet-stream"
    if ";base64" not in meta:
        raise ValueError("Only base64 data URLs are supported")
    try:
        return mime, base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}")


def upload_filename(side: str, color: str, product_id: str, mime_type: str) -> str:
    ext = (mime_type or "").split("/")[-1] or "png"
    pid = str(product_id or "").split("/")[-1]
    return f"{side}_{color}_{pid}_{int(time.time() * 1000)}.{ext}"


def staged_upload(filename: str, mime_type: str, file_size: int | None = None) -> dict:
    target = shopify.staged_uploads_create(filename, mime_type, file_size)
    return {
        "url": target.get("url"),
        "resourceUrl": target.get("resourceUrl"),
        "parameters": target.get("parameters") or [],
    }


def complete_staged_upload(files: list[dict]) -> list[dict]:
    """`files` carry `resourceUrl` (and optionally `alt`, `mimeType`) from the staged POST."""
    inputs = []
    for f in files or []:
        src = f.get("resourceUrl") or f.get("resource_url")
        if not src:
            continue
        item = {
            "contentType": "IMAGE" if str(f.get("mimeType") or "").startswith("image/") else "FILE",
            "originalSource": src,
        }
        if f.get("alt"):
            item["alt"] = f["alt"]
        inputs.append(item)
    if not inputs:
        return []
    return shopify.file_create(inputs)


def upload_data_url(data: Union[str, bytes, bytearray], filename: str, mime_type: str) -> dict:
    """Stage, POST and register one file; returns {id, url} of the created Shopify file."""
    if isinstance(data, str):
        _, blob = decode_data_url(data)
    elif isinstance(data, (bytes, bytearray)):
        blob = bytes(data)
    else:
        raise ValueError("Unsupported dataUrl input")

    target = shopify.staged_uploads_create(filename, mime_type, len(blob))
    url = target.get("url")
    params = {p.get("name"): p.get("value") for p in (target.get("parameters") or [])}

    r = shopify.post_staged_file(url, params, filename, blob, mime_type)
    if not r.ok:
        log.error("Staged upload POST failed for %s: HTTP %s", filename, r.status_code)
        raise FileUploadError("Staged upload POST failed", r.text[:500])

    resource_url = f"{url}/{params['key']}" if params.get("key") else (target.get("resourceUrl") or url)
    created = complete_staged_upload([{"resourceUrl": resource_url, "mimeType": mime_type}])
    if not created:
        raise FileUploadError("File was uploaded but Shopify did not register it")
    log.info("Uploaded %s as %s", filename, created[0].get("id"))
    return created[0]
