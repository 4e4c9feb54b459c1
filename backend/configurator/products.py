import logging
import re
from typing import List, Optional

from configurator import config, fixtures
from configurator.designs import list_designs
from configurator.integrations import shopify_client as shopify
from configurator.variants import normalize_price

log = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", (value or "").strip().lower()).strip("_")


def process_product(product: dict) -> dict:
    """Options keyed by lower-case name; metafields keyed `namespace.key`, JSON-decoded when possible."""
    options = {}
    for opt in product.get("options") or []:
        if opt.get("name") and opt.get("values") is not None:
            options[opt["name"].lower()] = opt["values"]
    metafields = {}
    for mf in product.get("metafields") or []:
        if mf.get("namespace") and mf.get("key") and mf.get("value"):
            metafields[f"{mf['namespace']}.{mf['key']}"] = shopify.parse_json_value(mf["value"])
    return {
        "id": product.get("id"),
        "title": product.get("title"),
        "handle": product.get("handle"),
        "description": product.get("description"),
        "productType": product.get("productType"),
        "vendor": product.get("vendor"),
        "status": product.get("status"),
        "tags": product.get("tags") or [],
        "options": options,
        "metafields": metafields,
        "images": product.get("images") or [],
        "variants": product.get("variants") or [],
    }


def list_products() -> List[dict]:
    return [
        {"id": p.get("id"), "title": p.get("title"), "handle": p.get("handle"), "status": p.get("status")}
        for p in shopify.list_products_by_title(first=100)
    ]


def search_products(term: Optional[str]) -> List[dict]:
    q = (term or "").strip()
    if len(q) < MIN_SEARCH_LENGTH:
        return []
    return [
        {"id": p.get("id"), "title": p.get("title"), "handle": p.get("handle"), "status": p.get("status")}
        for p in shopify.search_products(q, first=20)
    ]


def product_details(product_id: str) -> Optional[dict]:
    product = shopify.get_product(product_id)
    return process_product(product) if product else None


def product_variants(product_id: str) -> Optional[dict]:
    if config.FIXTURE_MODE:
        return fixtures.variants_payload(product_id)
    product = product_details(product_id)
    if not product:
        return None
    return {"variants": product["variants"], "product": product}


def product_sizes(product_id: str) -> List[str]:
    if config.FIXTURE_MODE:
        return fixtures.sizes()
    product = product_details(product_id)
    return list(((product or {}).get("options") or {}).get("size") or [])


def product_decorations(product_id: str) -> List[dict]:
    if config.FIXTURE_MODE:
        return fixtures.decorations()
    options = (product_details(product_id) or {}).get("options") or {}
    values = options.get("decoration") or options.get("decorations") or []
    return [{"id": _slug(v), "name": v, "description": ""} for v in values]


def create_product(data: dict) -> dict:
    """Create a product and price its default variant."""
    title = (data.get("title") or "").strip()
    if not title:
        raise ValueError("Product title is required")
    product_input = {"title": title}
    for src, dst in (("description", "descriptionHtml"), ("vendor", "vendor"),
                     ("product_type", "productType"), ("handle", "handle"), ("status", "status")):
        if data.get(src):
            product_input[dst] = data[src]
    tags = data.get("tags")
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",")]
    if tags:
        product_input["tags"] = [t for t in tags if t]

    product = shopify.create_product(product_input)
    default = (product.get("variants") or [{}])[0]
    if default.get("id"):
        update = {"id": default["id"], "price": normalize_price(data.get("price")), "inventoryPolicy": "DENY"}
        if data.get("sku"):
            update["inventoryItem"] = {"sku": data["sku"]}
        shopify.update_variants(product["id"], [update])
    return product


def update_product(product_id: str, data: dict) -> dict:
    product_input = {"id": shopify.to_gid("Product", product_id)}
    for src, dst in (("title", "title"), ("description", "descriptionHtml"), ("vendor", "vendor"),
                     ("product_type", "productType"), ("status", "status"), ("tags", "tags")):
        if data.get(src) is not None:
            product_input[dst] = data[src]
    return shopify.update_product(product_input)


def delete_product(product_id: str) -> Optional[str]:
    deleted = shopify.delete_product(product_id)
    log.info("Deleted product %s", deleted)
    return deleted


def dashboard() -> dict:
    counts = shopify.get_dashboard_counts()
    designs = list_designs()
    return {
        "stats": {
            "products": counts["products"],
            "orders": counts["orders"],
            "designs": len(designs),
            "pending_designs": sum(1 for d in designs if d["status"] == "pending"),
        },
        "recent_orders": shopify.list_recent_orders(first=5),
    }
