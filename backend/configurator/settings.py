"""Shop-level app settings and decoration fee maps, stored as shop metafields.

load_settings/save_settings are the only code that reads or writes the
settings metafields; everything else receives a typed AppSettings.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from configurator import config
from configurator.integrations import shopify_client as shopify

log = logging.getLogger(__name__)

FEE_MAP_KEYS = {"screenprint": "fee_map_scr", "embroidery": "fee_map_emb"}
TIERS_KEY = "screenprint_tiers"
QUANTITY_OPTION = "Quantity Range"
COLORS_OPTION = "Colors"


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v or "").strip().lower() in ("1", "true", "yes", "on")


class AppSettings(BaseModel):
    app_name: str = "Product Configurator"
    default_decoration_type: str = "screenprint"
    auto_approve_designs: bool = False
    notification_email: str = ""
    max_file_size_mb: int = config.MAX_FILE_SIZE_MB
    allowed_file_types: List[str] = Field(default_factory=lambda: ["jpg", "png", "pdf", "ai"])
    design_approval_required: bool = False
    customer_notifications: bool = False

    @field_validator("auto_approve_designs", "design_approval_required", "customer_notifications", mode="before")
    @classmethod
    def _parse_bool(cls, v):
        return _as_bool(v)

    @field_validator("max_file_size_mb", mode="before")
    @classmethod
    def _parse_size(cls, v):
        try:
            n = int(str(v).strip())
        except (TypeError, ValueError):
            return config.MAX_FILE_SIZE_MB
        return n if n > 0 else config.MAX_FILE_SIZE_MB

    @field_validator("allowed_file_types", mode="before")
    @classmethod
    def _parse_types(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return [t.strip().lower().lstrip(".") for t in (v or []) if t and t.strip()]

    @field_validator("app_name", "default_decoration_type", "notification_email", mode="before")
    @classmethod
    def _none_to_blank(cls, v):
        return "" if v is None else str(v).strip()


def settings_from_metafields(values: Dict[str, Optional[str]]) -> AppSettings:
    """Build AppSettings from raw metafield strings; unknown keys are ignored, blanks keep defaults."""
    known = {k: v for k, v in (values or {}).items() if k in AppSettings.model_fields and v not in (None, "")}
    return AppSettings(**known)


def settings_to_metafields(settings: AppSettings, owner_id: str) -> List[dict]:
    out = []
    for key, value in settings.model_dump().items():
        if isinstance(value, bool):
            mf_type, text = "boolean", "true" if value else "false"
        elif isinstance(value, list):
            mf_type, text = "single_line_text_field", ",".join(value)
        else:
            mf_type, text = "single_line_text_field", str(value)
        out.append({
            "ownerId": owner_id,
            "namespace": config.SETTINGS_NAMESPACE,
            "key": key,
            "type": mf_type,
            "value": text,
        })
    return out


def load_settings() -> AppSettings:
    _, values = shopify.get_shop_metafields(config.SETTINGS_NAMESPACE)
    return settings_from_metafields(values)


def save_settings(settings: AppSettings) -> AppSettings:
    shop = shopify.get_shop()
    shop_id = shop.get("id")
    if not shop_id:
        raise shopify.ShopifyError("Could not get shop ID")
    shopify.set_metafields(settings_to_metafields(settings, shop_id))
    log.info("Saved app settings for %s", shop.get("myshopifyDomain") or shop_id)
    return settings


# ---------------- Fee maps ----------------
def _safe_json(value: Optional[str]):
    try:
        return json.loads(value or "")
    except (TypeError, ValueError):
        return None


def build_fee_map(variants: List[dict]) -> Dict[str, Dict[str, str]]:
    """Map quantity tier -> colour count -> variant GID from a fee product's variants."""
    fee_map: Dict[str, Dict[str, str]] = {}
    for v in variants or []:
        opts = {o.get("name"): o.get("value") for o in (v.get("selectedOptions") or [])}
        tier = opts.get(QUANTITY_OPTION)
        try:
            colors = int(str(opts.get(COLORS_OPTION) or "").strip())
        except ValueError:
            continue
        if not tier:
            continue
        fee_map.setdefault(tier, {})[str(colors)] = v.get("id")
    return fee_map


def load_fee_maps() -> dict:
    _, values = shopify.get_shop_metafields(config.SETTINGS_NAMESPACE)
    return {
        "screenprint": _safe_json(values.get(FEE_MAP_KEYS["screenprint"])) or {},
        "embroidery": _safe_json(values.get(FEE_MAP_KEYS["embroidery"])) or {},
        "tiers": _safe_json(values.get(TIERS_KEY)) or [],
    }


def save_fee_map(handle: str, kind: str = "screenprint", tiers: Optional[list] = None) -> dict:
    """Rebuild one fee map from the fee product `handle` and store it (plus tiers) on the shop."""
    if kind not in FEE_MAP_KEYS:
        raise ValueError(f"Unknown fee map kind: {kind}")
    product = shopify.get_product_by_handle(handle)
    if not product:
        raise LookupError("Fee product not found")
    fee_map = build_fee_map(product.get("variants") or [])
    shop_id = shopify.get_shop().get("id")
    metafields = [{
        "ownerId": shop_id,
        "namespace": config.SETTINGS_NAMESPACE,
        "key": FEE_MAP_KEYS[kind],
        "type": "json",
        "value": json.dumps(fee_map),
    }]
    if tiers is not None:
        metafields.append({
            "ownerId": shop_id,
            "namespace": config.SETTINGS_NAMESPACE,
            "key": TIERS_KEY,
            "type": "json",
            "value": json.dumps(tiers),
        })
    shopify.set_metafields(metafields)
    log.info("Stored %s fee map with %d tiers from %s", kind, len(fee_map), handle)
    return fee_map
