"""Setup wizard: per-step validation and the generateVariants action.

configure_product never raises; every outcome is a JSON-ready envelope.
"""
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from configurator import config
from configurator.integrations import shopify_client as shopify
from configurator.suggestions import collect_option_values
from configurator.variants import (
    OptionAxis,
    combination_count,
    existing_signatures,
    filter_duplicates,
    generate_combinations,
    normalize_price,
    signature_from_selected_options,
    variant_signature,
)

log = logging.getLogger(__name__)

PRODUCT_TYPE = "Customizable Product"
PRODUCT_VENDOR = "Product Configurator"
PRICE_CEILING = Decimal("1000")
MIN_TITLE_LENGTH = 3

MSG_TITLE_REQUIRED = "Product title is required when creating a new product."
MSG_PRODUCT_REQUIRED = "Please select an existing product or create a new one."
MSG_OPTIONS_REQUIRED = "Please add at least one color or size option to configure the product."

MSG_GRAPHQL = "There was an issue communicating with Shopify. Please check your connection and try again."
MSG_AUTH = "Authentication failed. Please refresh the page and try again."
MSG_VALIDATION = "Invalid product data. Please check your inputs and try again."
MSG_UNEXPECTED = "An unexpected error occurred while configuring the product. Please try again."


def parse_option_list(value) -> List[str]:
    """Accept a list or a comma-separated string; trim, drop blanks, keep the first of case-insensitive repeats."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    out: List[str] = []
    seen = set()
    for item in items:
        s = str(item or "").strip()
        if s and s.lower() not in seen:
            seen.add(s.lower())
            out.append(s)
    return out


class GenerateVariantsRequest(BaseModel):
    product_id: Optional[str] = None
    is_creating_product: bool = False
    new_product_title: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    decorations: List[str] = Field(default_factory=list)
    price: Optional[str] = None

    @field_validator("colors", "sizes", "decorations", mode="before")
    @classmethod
    def _options(cls, v):
        return parse_option_list(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return None if v is None else str(v)


# ---------------- Step validation ----------------
def _decimal(value) -> Optional[Decimal]:
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    return d if d.is_finite() else None


def validate_product_step(is_creating: bool, title: Optional[str], product_id: Optional[str]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    t = (title or "").strip()
    if is_creating and not t:
        errors["product"] = ("Product title is required. Try something descriptive like "
                             "'Custom Logo T-Shirt' or 'Personalized Coffee Mug'.")
    elif is_creating and len(t) < MIN_TITLE_LENGTH:
        errors["product"] = ("Product title should be at least 3 characters long. "
                             "Make it descriptive so customers understand what they're buying.")
    elif not is_creating and not (product_id or "").strip():
        errors["product"] = ("Please select an existing product from your store, "
                             "or switch to 'Create New Product' to make a new one.")
    return errors


def validate_options_step(colors: List[str], sizes: List[str], decorations: List[str], price) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not colors:
        errors["colors"] = "Add at least one color option. Popular choices include: Black, White, Navy, Red, or Gray."
    if not sizes:
        errors["sizes"] = ("Add at least one size option. Common sizes include: S, M, L, XL for apparel "
                           "or Small, Medium, Large for other items.")
    if not decorations:
        errors["decorations"] = ("Add at least one decoration method. Popular options include: "
                                 "Screen Print, Embroidery, Heat Transfer, or Digital Print.")
    amount = _decimal(price) if price not in (None, "") else None
    if amount is None or amount <= 0:
        errors["price"] = ("Enter a valid price greater than $0. Consider your costs, materials, "
                           "and desired profit margin.")
    elif amount > PRICE_CEILING:
        errors["price"] = ("Price seems unusually high. Please double-check the amount "
                           "or contact support if this is correct.")
    return errors


def validate_images_step(
    colors: List[str],
    uploaded: Dict[str, Dict[str, Optional[dict]]],
    max_file_size_mb: int = config.MAX_FILE_SIZE_MB,
) -> Dict[str, str]:
    """`uploaded` maps colour -> {"front": {"size": bytes, ...}, "back": {...}}."""
    errors: Dict[str, str] = {}
    uploaded = uploaded or {}
    missing = [c for c in colors if not (uploaded.get(c) or {}).get("front") or not (uploaded.get(c) or {}).get("back")]
    if len(missing) == 1:
        errors["files"] = (f"Please upload both front and back view images for {missing[0]}. "
                           "High-quality images help customers visualize their custom product.")
    elif missing:
        errors["files"] = (f"Missing images for: {', '.join(missing)}. Each color needs both front and back "
                           "view images to show customers what their product will look like.")

    limit = max_file_size_mb * 1024 * 1024
    oversized = []
    for color, files in uploaded.items():
        for side in ("front", "back"):
            f = (files or {}).get(side)
            if f and int(f.get("size") or 0) > limit:
                oversized.append(f"{color} {side} view")
    if oversized:
        errors["fileSize"] = (f"These files are too large (over {max_file_size_mb}MB): {', '.join(oversized)}. "
                              "Please compress your images or use a smaller file size.")
    return errors


def combination_warning(colors: List[str], sizes: List[str], decorations: List[str]) -> Optional[str]:
    total = combination_count(colors, sizes, decorations)
    if total > config.MAX_VARIANT_COMBINATIONS:
        return (f"This configuration will create {total} product variants, which might be too many "
                "to manage effectively. Consider reducing the number of options.")
    return None


def validate_review_step(
    colors: List[str],
    sizes: List[str],
    decorations: List[str],
    uploaded: Dict[str, Dict[str, Optional[dict]]],
    max_file_size_mb: int = config.MAX_FILE_SIZE_MB,
) -> Dict[str, str]:
    errors = validate_images_step(colors, uploaded, max_file_size_mb)
    warning = combination_warning(colors, sizes, decorations)
    if warning:
        errors["variants"] = warning
    return errors


def validate_generate_request(req: GenerateVariantsRequest) -> Optional[str]:
    if req.is_creating_product and not (req.new_product_title or "").strip():
        return MSG_TITLE_REQUIRED
    if not req.is_creating_product and not (req.product_id or "").strip():
        return MSG_PRODUCT_REQUIRED
    if not req.colors and not req.sizes:
        return MSG_OPTIONS_REQUIRED
    return None


def describe_error(exc: Optional[BaseException]) -> str:
    msg = str(exc or "").strip()
    if not msg:
        return MSG_UNEXPECTED
    if "GraphQL" in msg:
        return MSG_GRAPHQL
    if "authentication" in msg or "unauthorized" in msg:
        return MSG_AUTH
    if "validation" in msg:
        return MSG_VALIDATION
    return f"Configuration failed: {msg}"


# ---------------- generateVariants ----------------
def _option_inputs(colors, sizes, decorations, skip_names=()) -> List[dict]:
    out = []
    for axis, values in ((OptionAxis.COLOR, colors), (OptionAxis.SIZE, sizes), (OptionAxis.DECORATION, decorations)):
        if values and axis.value not in skip_names:
            out.append({"name": axis.value, "values": [{"name": v} for v in values]})
    return out


def _new_product_input(title: str, colors, sizes, decorations) -> dict:
    product_input = {
        "title": title,
        "productType": PRODUCT_TYPE,
        "vendor": PRODUCT_VENDOR,
        "status": "DRAFT",
        "descriptionHtml": f"<p>Customizable {title} with multiple options for colors, sizes, and decorations.</p>",
    }
    options = _option_inputs(colors, sizes, decorations)
    if options:
        product_input["productOptions"] = options
    return product_input


def configuration_metafields(product_id: str, colors, sizes, decorations, price: Optional[str]) -> List[dict]:
    ns = config.CONFIG_NAMESPACE
    return [
        {"ownerId": product_id, "namespace": ns, "key": "colors", "value": json.dumps(colors), "type": "json"},
        {"ownerId": product_id, "namespace": ns, "key": "sizes", "value": json.dumps(sizes), "type": "json"},
        {"ownerId": product_id, "namespace": ns, "key": "decorations", "value": json.dumps(decorations), "type": "json"},
        {"ownerId": product_id, "namespace": ns, "key": "base_price", "value": normalize_price(price),
         "type": "single_line_text_field"},
    ]


def configure_product(req: GenerateVariantsRequest) -> dict:
    error = validate_generate_request(req)
    if error:
        return {"success": False, "error": error}

    colors, sizes, decorations = req.colors, req.sizes, req.decorations
    warning = combination_warning(colors, sizes, decorations)
    if warning:
        log.warning("generateVariants: %s", warning)

    try:
        product_id = "" if req.is_creating_product else shopify.to_gid("Product", req.product_id.strip())
        seeded: List[dict] = []
        if req.is_creating_product:
            title = req.new_product_title.strip()
            product = shopify.create_product(_new_product_input(title, colors, sizes, decorations))
            product_id = product.get("id")
            # productCreate seeds one variant from the first value of each option.
            seeded = product.get("variants") or []

        candidates = generate_combinations(colors, sizes, decorations, req.price)
        existing = [] if req.is_creating_product else shopify.get_product_variants(product_id, first=250)
        result = filter_duplicates(candidates, existing_signatures(existing))

        if result.all_duplicates:
            titles = ", ".join(c.title for c in result.skipped)
            return {
                "success": True,
                "message": (f"All {len(candidates)} variant combination(s) already exist for this product. "
                            f"Existing variants: {titles}. No new variants were created."),
                "skipped_variants": result.skipped_count,
                "existing_variants": [c.model_dump(mode="json") for c in result.skipped],
            }

        if not req.is_creating_product and (colors or sizes):
            present = shopify.get_product_option_names(product_id)
            to_add = _option_inputs(colors, sizes, decorations, skip_names=present)
            if to_add:
                shopify.create_product_options(product_id, to_add)

        to_create = result.created
        if seeded:
            seeded_sigs = {signature_from_selected_options(v.get("selectedOptions")): v.get("id") for v in seeded}
            to_create = [c for c in result.created if variant_signature(c) not in seeded_sigs]
            shopify.update_variants(product_id, [
                {"id": vid, "price": normalize_price(req.price)} for vid in seeded_sigs.values() if vid
            ])

        if to_create:
            shopify.bulk_create_variants(product_id, [c.to_bulk_input() for c in to_create])

        shopify.set_metafields(configuration_metafields(product_id, colors, sizes, decorations, req.price))
    except shopify.ShopifyUserError as e:
        log.warning("generateVariants rejected by Shopify: %s", e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        log.exception("Error in generateVariants action")
        return {"success": False, "error": describe_error(e)}

    created_count = len(result.created)
    message = "Product created and configured successfully!" if req.is_creating_product else "Product configured successfully!"
    if result.skipped_count > 0:
        message += (f" {created_count} new variant(s) created. "
                    f"{result.skipped_count} duplicate variant(s) were skipped.")
    out = {
        "success": True,
        "product_id": product_id,
        "message": message,
        "created_variants": created_count,
        "skipped_variants": result.skipped_count,
    }
    if warning:
        out["warning"] = warning
    return out


# ---------------- Loaders ----------------
def wizard_context() -> dict:
    products = shopify.list_products(first=50)
    values = collect_option_values(shopify.list_product_options(first=250))
    return {"products": products, **values}


def load_configuration(product_id: str) -> dict:
    values = shopify.get_product_metafields(product_id, config.CONFIG_NAMESPACE)
    return {
        "colors": shopify.parse_json_value(values.get("colors")) or [],
        "sizes": shopify.parse_json_value(values.get("sizes")) or [],
        "decorations": shopify.parse_json_value(values.get("decorations")) or [],
        "base_price": values.get("base_price") or "0.00",
    }
