"""Submitted designs, stored as `design` metaobjects."""
import json
import logging
from typing import List, Optional

from configurator import config
from configurator.design_status import DEFAULT_STATUS, InvalidTransition, allowed_transitions, parse_status, transition
from configurator.integrations import shopify_client as shopify
from configurator.notifications import send_admin_notification, send_design_notification

log = logging.getLogger(__name__)

SIDES = ("front", "back", "left", "right")

DESIGN_FIELDS = [
    {"name": "Product", "key": "product", "type": "product_reference", "required": False},
    {"name": "Product Title", "key": "product_title", "type": "single_line_text_field"},
    {"name": "Customer Email", "key": "customer_email", "type": "single_line_text_field"},
    {"name": "Status", "key": "status", "type": "single_line_text_field"},
    {"name": "Decoration", "key": "decoration", "type": "single_line_text_field"},
    {"name": "Notes", "key": "notes", "type": "multi_line_text_field"},
    {"name": "Front File", "key": "front_file", "type": "file_reference"},
    {"name": "Back File", "key": "back_file", "type": "file_reference"},
    {"name": "Left File", "key": "left_file", "type": "file_reference"},
    {"name": "Right File", "key": "right_file", "type": "file_reference"},
    {"name": "Transforms", "key": "transforms", "type": "json"},
]


class DesignNotFound(LookupError):
    pass


def _fields(pairs) -> List[dict]:
    return [{"key": k, "value": str(v)} for k, v in pairs if v is not None]


def _allowed(status: str) -> List[str]:
    try:
        return allowed_transitions(status)
    except InvalidTransition:
        return []


def design_from_metaobject(node: dict) -> dict:
    fields = {f.get("key"): f.get("value") for f in (node.get("fields") or [])}
    status = fields.get("status") or DEFAULT_STATUS.value
    return {
        "id": node.get("id"),
        "handle": node.get("handle"),
        "updated_at": node.get("updatedAt"),
        "customer_email": fields.get("customer_email") or "",
        "status": status,
        "decoration": fields.get("decoration") or "",
        "notes": fields.get("notes") or "",
        "product_id": fields.get("product") or "",
        "product_title": fields.get("product_title") or "Custom Product",
        "files": {side: fields.get(f"{side}_file") for side in SIDES if fields.get(f"{side}_file")},
        "transforms": shopify.parse_json_value(fields.get("transforms")),
        "allowed_transitions": _allowed(status),
    }


def ensure_design_definition() -> str:
    existing = shopify.get_metaobject_definition(config.DESIGN_TYPE)
    if existing:
        return existing.get("id")
    definition_id = shopify.create_metaobject_definition({
        "type": config.DESIGN_TYPE,
        "name": "Design",
        "fieldDefinitions": DESIGN_FIELDS,
    })
    log.info("Created metaobject definition %s (%s)", config.DESIGN_TYPE, definition_id)
    return definition_id


def create_design(payload: dict) -> dict:
    """Create a design metaobject; submission emails are best-effort."""
    ensure_design_definition()
    product = payload.get("product_id")
    fields = _fields([
        ("product", shopify.to_gid("Product", product) if product else None),
        ("product_title", payload.get("product_title")),
        ("customer_email", payload.get("customer_email")),
        ("status", payload.get("status") or DEFAULT_STATUS.value),
        ("decoration", payload.get("decoration") or ""),
        ("notes", payload.get("notes") or ""),
    ])
    created = shopify.create_metaobject(config.DESIGN_TYPE, fields)

    if created and payload.get("customer_email"):
        info = {
            "id": created.get("id"),
            "handle": created.get("handle"),
            "customer_email": payload.get("customer_email"),
            "decoration": payload.get("decoration"),
            "product_title": payload.get("product_title") or "Custom Product",
        }
        try:
            send_design_notification(info, "submitted")
            send_admin_notification(info)
        except Exception:
            log.exception("Failed to send design submission notifications for %s", created.get("handle"))
    return created


def update_design_files(
    design_id: str,
    front: Optional[str] = None,
    back: Optional[str] = None,
    left: Optional[str] = None,
    right: Optional[str] = None,
    transforms: Optional[dict] = None,
) -> bool:
    fields = _fields([
        ("front_file", front or None),
        ("back_file", back or None),
        ("left_file", left or None),
        ("right_file", right or None),
        ("transforms", json.dumps(transforms) if transforms else None),
    ])
    if not fields:
        return False
    shopify.update_metaobject(design_id, fields)
    return True


def get_design(design_id: str) -> dict:
    node = shopify.get_metaobject(design_id)
    if not node:
        raise DesignNotFound("Design not found")
    return design_from_metaobject(node)


def set_design_status(design_id: str, status: str, message: Optional[str] = None) -> dict:
    """Validate and apply a status change; raises InvalidTransition for a move the workflow forbids."""
    design = get_design(design_id)
    current = parse_status(design.get("status"))
    target = transition(current.value, status)

    fields = [{"key": "status", "value": target.value}]
    if message:
        fields.append({"key": "notes", "value": message})
    shopify.update_metaobject(design_id, fields)

    if design.get("customer_email") and target != current:
        try:
            send_design_notification(design, target.value, message or "")
            log.info("Notification sent for design %s status change: %s -> %s",
                     design.get("handle"), current.value, target.value)
        except Exception:
            log.exception("Failed to send status notification for %s", design_id)

    design["status"] = target.value
    if message:
        design["notes"] = message
    design["allowed_transitions"] = allowed_transitions(target.value)
    return design


def list_designs(status: Optional[str] = None) -> List[dict]:
    designs = [design_from_metaobject(n) for n in shopify.list_metaobjects(config.DESIGN_TYPE, first=100)]
    if status:
        designs = [d for d in designs if d["status"].lower() == status.lower()]
    return designs


def list_designs_for_email(email: Optional[str]) -> List[dict]:
    designs = list_designs()
    if not email:
        return designs
    return [d for d in designs if d["customer_email"].lower() == email.lower()]


def get_designs_by_ids(ids: List[str]) -> List[dict]:
    return [design_from_metaobject(n) for n in shopify.get_metaobjects(ids)]
