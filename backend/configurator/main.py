from fastapi import FastAPI, UploadFile, Form, File, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
import base64, hmac, hashlib
import json
import logging

from configurator import config, db, designs, files, fixtures, orders, products, settings, wizard
from configurator.design_status import DesignStatus, InvalidTransition
from configurator.designs import DesignNotFound
from configurator.files import FileUploadError
from configurator.integrations.shopify_client import ShopifyError, ShopifyUserError
from configurator.suggestions import COMMON_SUGGESTIONS, SUGGESTION_LIMIT, filter_suggestions
from configurator.wizard import GenerateVariantsRequest

app = FastAPI(title="Product Configurator", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1024)

# Basic logger for diagnostics (stdout captured by the container runtime)
logger = logging.getLogger("configurator")
if not logger.handlers:
    logger.addHandler(logging.StreamHandler())
logger.setLevel(config.LOG_LEVEL)


def _fail(error: str, status_code: int = 400, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _error_response(e: Exception) -> JSONResponse:
    if isinstance(e, InvalidTransition):
        return _fail(str(e), 409, current=e.current, requested=e.requested)
    if isinstance(e, ShopifyUserError):
        return _fail(str(e), 400, user_errors=e.user_errors)
    if isinstance(e, DesignNotFound):
        return _fail(str(e) or "Not found", 404)
    if isinstance(e, FileUploadError):
        return _fail(str(e), 502, detail=e.detail)
    if isinstance(e, ValueError):
        return _fail(str(e), 400)
    logger.exception("Unhandled error: %s", e)
    return _fail(str(e) or "Internal error", 500)


# ---------------- Shopify request verification ----------------
def _verify_proxy_signature(pairs: List[tuple], secret: str) -> bool:
    """App proxy signature: hex HMAC-SHA256 over sorted `key=value` pairs joined without a separator.

    Repeated keys are joined with commas; the `signature` parameter itself is excluded.
    """
    provided = ""
    grouped: Dict[str, List[str]] = {}
    for k, v in pairs:
        if k == "signature":
            provided = v
            continue
        grouped.setdefault(k, []).append(v)
    if not (provided and secret):
        return False
    message = "".join(f"{k}={','.join(vs)}" for k, vs in sorted(grouped.items()))
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, provided)


def _proxy_ok(request: Request) -> bool:
    if not (config.SHOPIFY_API_SECRET and config.APP_PROXY_VERIFY):
        return True
    ok = _verify_proxy_signature(list(request.query_params.multi_items()), config.SHOPIFY_API_SECRET)
    if not ok:
        logger.info("[proxy] invalid signature path=%s shop=%s", request.url.path, request.query_params.get("shop"))
    return ok


def _verify_webhook_hmac(body: bytes, provided: str, secret: str) -> bool:
    digest = base64.b64encode(hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()).decode("ascii")
    return hmac.compare_digest(digest, (provided or "").strip())


_PROXY_REJECTED = {"success": False, "error": "Invalid app proxy signature"}


# ---------------- Setup wizard ----------------
@app.get("/api/setup")
async def api_setup_context():
    try:
        return {"success": True, **wizard.wizard_context()}
    except Exception as e:
        return _error_response(e)


class StepValidationRequest(BaseModel):
    step: str
    is_creating_product: bool = False
    new_product_title: Optional[str] = None
    product_id: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    decorations: List[str] = Field(default_factory=list)
    price: Optional[Union[str, float]] = None
    uploaded: Dict[str, Dict[str, Optional[dict]]] = Field(default_factory=dict)
    max_file_size_mb: Optional[int] = None


@app.post("/api/setup/validate")
async def api_setup_validate(req: StepValidationRequest):
    limit = req.max_file_size_mb or config.MAX_FILE_SIZE_MB
    step = req.step.strip().lower()
    if step == "product":
        errors = wizard.validate_product_step(req.is_creating_product, req.new_product_title, req.product_id)
    elif step == "options":
        errors = wizard.validate_options_step(req.colors, req.sizes, req.decorations, req.price)
    elif step == "images":
        errors = wizard.validate_images_step(req.colors, req.uploaded, limit)
    elif step == "review":
        errors = wizard.validate_review_step(req.colors, req.sizes, req.decorations, req.uploaded, limit)
    else:
        return _fail(f"Unknown wizard step: {req.step}")
    return {"success": not errors, "errors": errors}


@app.post("/api/setup/generate-variants")
async def api_generate_variants(req: GenerateVariantsRequest):
    return wizard.configure_product(req)


class SuggestionsRequest(BaseModel):
    text: str = ""
    option_type: str = "option"
    existing: List[str] = Field(default_factory=list)
    suggestions: Optional[List[str]] = None
    limit: int = SUGGESTION_LIMIT


@app.post("/api/suggestions")
async def api_suggestions(req: SuggestionsRequest):
    pool = req.suggestions if req.suggestions is not None else COMMON_SUGGESTIONS.get(req.option_type, [])
    items = filter_suggestions(req.text, req.existing, pool, option_type=req.option_type, limit=req.limit)
    return {"success": True, "items": items}


# ---------------- Products ----------------
@app.get("/api/products/list")
async def api_products_list():
    try:
        return {"items": products.list_products()}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/search")
async def api_products_search(q: str = ""):
    try:
        return {"items": products.search_products(q)}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/details")
async def api_product_details(productId: str = ""):
    if not productId:
        return _fail("Product ID is required")
    try:
        product = products.product_details(productId)
        if not product:
            return _fail("Product not found", 404)
        return {"success": True, "product": product}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/variants")
async def api_product_variants(productId: str = ""):
    if not productId:
        return _fail("Product ID is required")
    try:
        data = products.product_variants(productId)
        if not data:
            return _fail("Product not found", 404)
        return {"success": True, **data}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/sizes")
async def api_product_sizes(request: Request, productId: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if not productId:
        return _fail("Product ID is required")
    try:
        return {"success": True, "sizes": products.product_sizes(productId)}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/decorations")
async def api_product_decorations(request: Request, productId: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if not productId:
        return _fail("Product ID is required")
    try:
        return {"success": True, "decorations": products.product_decorations(productId)}
    except Exception as e:
        return _error_response(e)


class ProductCreateRequest(BaseModel):
    title: str
    description: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    handle: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[Union[str, List[str]]] = None
    price: Optional[str] = None
    sku: Optional[str] = None


class ProductUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[List[str]] = None


@app.post("/api/products")
async def api_product_create(req: ProductCreateRequest):
    try:
        return {"success": True, "product": products.create_product(req.model_dump())}
    except Exception as e:
        return _error_response(e)


@app.put("/api/products/{product_id}")
async def api_product_update(product_id: str, req: ProductUpdateRequest):
    try:
        return {"success": True, "product": products.update_product(product_id, req.model_dump())}
    except Exception as e:
        return _error_response(e)


@app.delete("/api/products/{product_id}")
async def api_product_delete(product_id: str):
    try:
        return {"success": True, "deleted_product_id": products.delete_product(product_id)}
    except Exception as e:
        return _error_response(e)


@app.get("/api/products/{product_id}/configuration")
async def api_product_configuration(product_id: str):
    try:
        return {"success": True, "configuration": wizard.load_configuration(product_id)}
    except Exception as e:
        return _error_response(e)


# ---------------- Design metaobjects ----------------
class DesignCreateRequest(BaseModel):
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    customer_email: Optional[str] = None
    decoration: Optional[str] = None
    notes: Optional[str] = None


@app.post("/api/designs/create")
async def api_design_create(request: Request, req: DesignCreateRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        created = designs.create_design({**req.model_dump(), "status": DesignStatus.PENDING.value})
        return {"id": created.get("id"), "handle": created.get("handle"), "type": created.get("type")}
    except Exception as e:
        return _error_response(e)


@app.get("/api/designs")
async def api_designs_list(status: str = ""):
    try:
        return {"success": True, "designs": designs.list_designs(status or None), "current_status": status}
    except Exception as e:
        return _error_response(e)


def _upload_side_images(images: Dict[str, str], filenames: Dict[str, str]) -> Dict[str, dict]:
    """Upload data-URL images per side; values that are already file GIDs pass through."""
    out: Dict[str, dict] = {}
    for side in designs.SIDES:
        value = (images or {}).get(side)
        if not value:
            continue
        if value.startswith("gid://"):
            out[side] = {"id": value, "url": None}
            continue
        mime, _ = files.decode_data_url(value)
        name = (filenames or {}).get(side) or f"{side}.{mime.split('/')[-1] or 'png'}"
        out[side] = files.upload_data_url(value, name, mime)
    return out


class DesignConfigurationRequest(BaseModel):
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    design_name: Optional[str] = None
    decoration: Optional[str] = None
    notes: Optional[str] = None
    transforms: Optional[dict] = None
    quantities: Optional[dict] = None
    images: Optional[Dict[str, str]] = None
    filenames: Dict[str, str] = Field(default_factory=dict)


@app.post("/api/designs/configuration")
async def api_design_configuration_save(request: Request, req: DesignConfigurationRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        design = designs.create_design({
            "product_id": req.product_id,
            "product_title": req.product_title,
            "customer_email": req.customer_email,
            "decoration": req.decoration,
            "notes": req.notes,
            "status": DesignStatus.DRAFT.value,
        })
        draft = db.create_customer_design({
            "id": design.get("id"),
            "customer_id": req.customer_id,
            "customer_email": req.customer_email,
            "product_id": req.product_id,
            "product_title": req.product_title,
            "design_name": req.design_name,
            "decoration_type": req.decoration,
            "status": DesignStatus.DRAFT.value,
            "notes": req.notes,
            "transforms": req.transforms,
            "quantities": req.quantities,
        })
        if not draft.get("success"):
            logger.error("Failed to create customer design: %s", draft.get("error"))

        if req.images:
            uploaded = _upload_side_images(req.images, req.filenames)
            file_ids = {side: f.get("id") for side, f in uploaded.items()}
            designs.update_design_files(design.get("id"), transforms=req.transforms, **file_ids)
            db.update_customer_design(design.get("id"), {f"{side}_file_id": fid for side, fid in file_ids.items()})
        return {
            "success": True,
            "design_id": design.get("id"),
            "design_handle": design.get("handle"),
            "message": "Design configuration saved successfully",
        }
    except Exception as e:
        return _error_response(e)


@app.get("/api/designs/configuration")
async def api_design_configuration_get(request: Request, id: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if not id:
        return _fail("Design ID is required")
    result = db.get_customer_design(id)
    if not result["success"]:
        return _fail(result["error"], 404)
    return result


class DraftRequest(BaseModel):
    action: str
    id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    design_name: Optional[str] = None
    decoration_type: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    front_file_id: Optional[str] = None
    back_file_id: Optional[str] = None
    left_file_id: Optional[str] = None
    right_file_id: Optional[str] = None
    transforms: Optional[Any] = None
    quantities: Optional[Any] = None


@app.post("/api/designs/draft")
async def api_design_draft_action(request: Request, req: DraftRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    data = req.model_dump(exclude_unset=True)
    data.pop("action", None)
    if req.action == "create":
        data.pop("id", None)
        data["status"] = DesignStatus.DRAFT.value
        data.setdefault("decoration_type", "Screenprint")
        result = db.create_customer_design(data)
        if not result["success"]:
            return _fail(result["error"])
        return {**result, "message": "Draft saved successfully"}
    if req.action == "update":
        if not req.id:
            return _fail("Design ID is required for update")
        design_id = data.pop("id")
        result = db.update_customer_design(design_id, data)
        if not result["success"]:
            return _fail(result["error"])
        return {**result, "message": "Draft updated successfully"}
    if req.action == "delete":
        if not req.id:
            return _fail("Design ID is required for deletion")
        result = db.delete_customer_design(req.id)
        if not result["success"]:
            return _fail(result["error"])
        return {**result, "message": "Draft deleted successfully"}
    return _fail("Invalid action specified")


@app.get("/api/designs/draft")
async def api_design_draft_query(request: Request, action: str = "list", id: str = "", customerId: str = "", customerEmail: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if action == "get":
        if not id:
            return _fail("Design ID is required")
        result = db.get_customer_design(id)
        if not result["success"]:
            return _fail(result["error"], 404)
        return result
    if action == "list":
        if not customerId and not customerEmail:
            return _fail("Customer ID or email is required")
        result = db.list_customer_designs({
            "status": DesignStatus.DRAFT.value,
            "customer_id": customerId or None,
            "customer_email": customerEmail or None,
        })
        if not result["success"]:
            return _fail(result["error"])
        return result
    return _fail("Invalid action specified")


class SaveDesignRequest(BaseModel):
    design_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    product_id: Optional[str] = None
    product_title: Optional[str] = None
    design_name: Optional[str] = None
    decoration_type: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    front_file_id: Optional[str] = None
    back_file_id: Optional[str] = None
    left_file_id: Optional[str] = None
    right_file_id: Optional[str] = None
    transforms: Optional[Any] = None
    quantities: Optional[Any] = None


@app.post("/api/designs/save")
async def api_design_save(request: Request, req: SaveDesignRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    data = req.model_dump(exclude_unset=True)
    design_id = data.pop("design_id", None)
    if design_id:
        result = db.update_customer_design(design_id, data)
        message = "Design updated successfully"
    else:
        data["status"] = data.get("status") or DesignStatus.DRAFT.value
        result = db.create_customer_design(data)
        message = "Design saved successfully"
    if not result["success"]:
        logger.error("Failed to save customer design: %s", result["error"])
        return _fail(result["error"], 500)
    return {**result, "message": message}


@app.post("/api/designs/upload")
async def api_design_upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    side: str = Form(""),
    color: str = Form(""),
    product_id: str = Form(""),
):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if file is None:
        return _fail("No file provided")
    if not side:
        return _fail("Side parameter is required")
    try:
        blob = await file.read()
        if len(blob) > config.MAX_FILE_SIZE_MB * 1024 * 1024:
            return _fail(f"File is larger than {config.MAX_FILE_SIZE_MB}MB")
        mime = file.content_type or "image/png"
        uploaded = files.upload_data_url(blob, files.upload_filename(side, color, product_id, mime), mime)
        return {
            "success": True,
            "file": {
                "id": uploaded.get("id"),
                "url": uploaded.get("url"),
                "name": file.filename,
                "size": len(blob),
                "type": file.content_type,
            },
        }
    except Exception as e:
        return _error_response(e)


@app.get("/api/designs/{design_id:path}/status")
async def api_design_allowed(design_id: str):
    try:
        design = designs.get_design(design_id)
        return {"success": True, "status": design["status"], "allowed_transitions": design["allowed_transitions"]}
    except Exception as e:
        return _error_response(e)


def _known_status(value: str) -> Optional[str]:
    s = (value or "").strip().lower()
    return s if s in {st.value for st in DesignStatus} else None


class DesignStatusRequest(BaseModel):
    status: str
    message: Optional[str] = None


@app.post("/api/designs/{design_id:path}/status")
async def api_design_status(design_id: str, req: DesignStatusRequest):
    status = _known_status(req.status)
    if not status:
        return _fail("Invalid status")
    try:
        design = designs.set_design_status(design_id, status, req.message or "")
        return {"success": True, "design": design}
    except Exception as e:
        return _error_response(e)


class DesignFilesRequest(BaseModel):
    images: Dict[str, str] = Field(default_factory=dict)
    filenames: Dict[str, str] = Field(default_factory=dict)
    transforms: Optional[dict] = None


@app.post("/api/designs/{design_id:path}/files")
async def api_design_files(request: Request, design_id: str, req: DesignFilesRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        uploaded = _upload_side_images(req.images, req.filenames)
        designs.update_design_files(
            design_id,
            transforms=req.transforms,
            **{side: f.get("id") for side, f in uploaded.items()},
        )
        return {"ok": True, "files": uploaded}
    except Exception as e:
        return _error_response(e)


@app.get("/api/designs/{design_id:path}")
async def api_design_get(design_id: str):
    try:
        return {"success": True, "design": designs.get_design(design_id)}
    except Exception as e:
        return _error_response(e)


@app.get("/api/customer-designs")
async def api_customer_designs(request: Request, customerId: str = "", customerEmail: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if config.FIXTURE_MODE:
        return {"success": True, "designs": fixtures.customer_designs()}
    if not customerId and not customerEmail:
        return _fail("Customer ID or email is required")
    result = db.list_customer_designs({"customer_id": customerId or None, "customer_email": customerEmail or None})
    if not result["success"]:
        return _fail(result["error"], 500)
    return result


@app.get("/apps/my-designs")
async def proxy_my_designs(request: Request, email: str = ""):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        items = [
            {"id": d["id"], "email": d["customer_email"], "status": d["status"]}
            for d in designs.list_designs_for_email(email or None)
        ]
        return {"items": items, "email": email}
    except Exception as e:
        return _error_response(e)


@app.get("/apps/proof/{design_id:path}")
async def proxy_proof(request: Request, design_id: str):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        return {"design": designs.get_design(design_id)}
    except Exception as e:
        return _error_response(e)


@app.post("/apps/proof/{design_id:path}")
async def proxy_proof_decision(request: Request, design_id: str, status: str = Form(""), message: str = Form("")):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    if not status:
        return _fail("Missing status")
    target = _known_status(status)
    if not target:
        return _fail("Invalid status")
    try:
        designs.set_design_status(design_id, target, message)
        return {"ok": True}
    except Exception as e:
        return _error_response(e)


# ---------------- Files ----------------
class StageRequest(BaseModel):
    filename: str
    mime_type: str
    file_size: Optional[int] = None


class CompleteRequest(BaseModel):
    files: List[dict] = Field(default_factory=list)


@app.post("/api/files/stage")
async def api_files_stage(request: Request, req: StageRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        return files.staged_upload(req.filename, req.mime_type, req.file_size)
    except Exception as e:
        return _error_response(e)


@app.post("/api/files/complete")
async def api_files_complete(request: Request, req: CompleteRequest):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        return {"files": files.complete_staged_upload(req.files)}
    except Exception as e:
        return _error_response(e)


# ---------------- Fees & settings ----------------
@app.get("/api/fee-maps")
async def api_fee_maps(request: Request):
    if not _proxy_ok(request):
        return JSONResponse(status_code=401, content=_PROXY_REJECTED)
    try:
        return settings.load_fee_maps()
    except Exception as e:
        return _error_response(e)


class FeesRequest(BaseModel):
    handle: str
    kind: str = "screenprint"
    tiers: Optional[Union[str, List[Any]]] = None


@app.post("/api/fees")
async def api_fees_save(req: FeesRequest):
    tiers = req.tiers
    if isinstance(tiers, str):
        try:
            tiers = json.loads(tiers or "[]")
        except ValueError:
            return _fail("tiers must be valid JSON")
    try:
        fee_map = settings.save_fee_map(req.handle, req.kind, tiers)
        return {"success": True, "fee_map": fee_map}
    except LookupError as e:
        return _fail(str(e), 400)
    except Exception as e:
        return _error_response(e)


@app.get("/api/settings")
async def api_settings_get():
    try:
        return {"success": True, "settings": settings.load_settings().model_dump()}
    except Exception as e:
        return _error_response(e)


@app.post("/api/settings")
async def api_settings_save(req: settings.AppSettings):
    try:
        saved = settings.save_settings(req)
        return {"success": True, "settings": saved.model_dump(), "message": "Settings saved successfully!"}
    except Exception as e:
        return _error_response(e)


# ---------------- Orders ----------------
@app.get("/api/orders")
async def api_orders(status: str = "", search: str = "", designStatus: str = ""):
    try:
        items = orders.list_orders(status or None, search or None, designStatus or None)
        return {
            "orders": items,
            "current_status": status,
            "current_search": search,
            "current_design_status": designStatus,
        }
    except Exception as e:
        return _error_response(e)


@app.get("/api/orders/{order_id}")
async def api_order(order_id: str):
    try:
        order = orders.get_order(order_id)
        if not order:
            return _fail("Order not found", 404)
        return {"success": True, "order": order}
    except Exception as e:
        return _error_response(e)


@app.post("/api/orders/{order_id}/fulfill")
async def api_order_fulfill(order_id: str):
    try:
        return {"success": True, "fulfillment": orders.fulfill_order(order_id)}
    except ShopifyUserError as e:
        return _fail(str(e), 400)
    except Exception as e:
        logger.exception("Failed to fulfill order %s", order_id)
        return _fail("Failed to fulfill order", 500, detail=str(e))


@app.post("/webhooks/orders/create")
async def webhook_orders_create(request: Request):
    body = await request.body()
    if config.SHOPIFY_API_SECRET:
        if not _verify_webhook_hmac(body, request.headers.get("x-shopify-hmac-sha256", ""), config.SHOPIFY_API_SECRET):
            return JSONResponse(status_code=401, content={"ok": False, "error": "invalid_hmac"})
    topic = (request.headers.get("x-shopify-topic") or "orders/create").strip().lower()
    if topic != "orders/create":
        return {"ok": True}
    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return JSONResponse(status_code=400, content={"ok": False, "error": "invalid_json"})
    try:
        return orders.handle_order_created(payload)
    except Exception as e:
        logger.exception("orders/create webhook failed")
        return JSONResponse(status_code=500, content={"ok": False, "error": str(e)})


# ---------------- Misc ----------------
@app.get("/api/dashboard")
async def api_dashboard():
    try:
        return {"success": True, **products.dashboard()}
    except Exception as e:
        return _error_response(e)


@app.get("/api/env")
async def api_env():
    return {
        "shop_domain": bool(config.SHOPIFY_SHOP_DOMAIN),
        "access_token": bool(config.SHOPIFY_ACCESS_TOKEN),
        "api_key": bool(config.SHOPIFY_API_KEY),
        "api_secret": bool(config.SHOPIFY_API_SECRET),
        "app_url": config.SHOPIFY_APP_URL or None,
        "api_version": config.SHOPIFY_API_VERSION,
        "scopes": config.SCOPES,
        "fixture_mode": config.FIXTURE_MODE,
        "database": "external" if config.DATABASE_URL else "sqlite",
    }


@app.get("/health")
async def health():
    return {"ok": True}
