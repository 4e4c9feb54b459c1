import json
import logging
from typing import List, Optional

from configurator.designs import get_designs_by_ids
from configurator.integrations import shopify_client as shopify

log = logging.getLogger(__name__)

DESIGN_PROPERTY = "_Design ID"
DESIGN_IDS_NAMESPACE = "custom"
DESIGN_IDS_KEY = "design_ids"


def build_order_query(status: Optional[str] = None, search: Optional[str] = None) -> Optional[str]:
    parts = []
    if status:
        parts.append(f"fulfillment_status:{status}")
    if search:
        parts.append(f"name:*{search}* OR email:*{search}*")
    return " AND ".join(parts) or None


def order_design_ids(order: dict) -> List[str]:
    raw = ((order.get("metafield") or {}).get("value"))
    if not raw:
        return []
    try:
        ids = json.loads(raw)
    except ValueError:
        log.warning("Unparseable design_ids on order %s", order.get("id"))
        return []
    return [str(i) for i in ids if i] if isinstance(ids, list) else []


def summarize_design_statuses(statuses: List[str]) -> str:
    """All approved -> approved; any rejected -> rejected; otherwise pending."""
    normalized = [(s or "pending").lower() for s in statuses]
    if normalized and all(s == "approved" for s in normalized):
        return "approved"
    if any(s == "rejected" for s in normalized):
        return "rejected"
    return "pending"


def _design_statuses(ids: List[str]) -> List[str]:
    statuses = []
    for node in shopify.get_metaobjects(ids):
        fields = {f.get("key"): f.get("value") for f in (node.get("fields") or [])}
        statuses.append(fields.get("status") or "pending")
    return statuses


def design_info(order: dict) -> dict:
    ids = order_design_ids(order)
    if not ids:
        return {"has_designs": False, "design_status": None, "design_count": 0}
    return {
        "has_designs": True,
        "design_status": summarize_design_statuses(_design_statuses(ids)),
        "design_count": len(ids),
    }


def matches_design_filter(info: dict, design_status: Optional[str]) -> bool:
    if not design_status:
        return True
    if design_status == "with_designs":
        return info["has_designs"]
    if design_status == "no_designs":
        return not info["has_designs"]
    return info["design_status"] == design_status


def list_orders(status: Optional[str] = None, search: Optional[str] = None, design_status: Optional[str] = None) -> List[dict]:
    out = []
    for order in shopify.list_orders(build_order_query(status, search), first=50):
        info = design_info(order)
        if matches_design_filter(info, design_status):
            out.append({**order, "design_info": info})
    return out


def get_order(order_id: str) -> Optional[dict]:
    order = shopify.get_order(order_id)
    if not order:
        return None
    ids = order_design_ids(order)
    order["designs"] = get_designs_by_ids(ids) if ids else []
    return order


def fulfill_order(order_id: str) -> dict:
    fulfillment = shopify.fulfill_order(order_id, notify_customer=True)
    log.info("Fulfilled order %s (%s)", order_id, fulfillment.get("id"))
    return fulfillment


def collect_design_ids(payload: dict) -> List[str]:
    ids = []
    for item in (payload or {}).get("line_items") or []:
        for prop in (item or {}).get("properties") or []:
            if (prop or {}).get("name") == DESIGN_PROPERTY and prop.get("value"):
                ids.append(str(prop["value"]))
    return ids


def handle_order_created(payload: dict) -> dict:
    """orders/create webhook: record the order's design IDs as a list metafield."""
    ids = collect_design_ids(payload)
    if not ids:
        return {"ok": True, "design_ids": []}
    order_gid = shopify.to_gid("Order", str(payload.get("id")))
    shopify.set_metafields([{
        "ownerId": order_gid,
        "namespace": DESIGN_IDS_NAMESPACE,
        "key": DESIGN_IDS_KEY,
        "type": "list.single_line_text_field",
        "value": json.dumps(ids),
    }])
    log.info("Linked %d design(s) to %s", len(ids), order_gid)
    return {"ok": True, "design_ids": ids}
