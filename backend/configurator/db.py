import json
import logging
import random
import string
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

from sqlalchemy import create_engine, Column, String, DateTime, Text, desc, Index
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from configurator import config

log = logging.getLogger(__name__)

# Support external database via DATABASE_URL. Fallback to SQLite under DATA_DIR.
if config.DATABASE_URL:
    engine = create_engine(config.DATABASE_URL, future=True, pool_pre_ping=True)
else:
    DATA_DIR = Path(config.DATA_DIR)
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{DATA_DIR / 'configurator.db'}", future=True)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
Base = declarative_base()


class CustomerDesign(Base):
    __tablename__ = "customer_designs"

    id = Column(String, primary_key=True)
    customer_id = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    product_id = Column(String, nullable=True)
    product_title = Column(String, nullable=True)
    design_name = Column(String, nullable=True)
    decoration_type = Column(String, nullable=True)
    status = Column(String, nullable=False, default="draft")
    notes = Column(Text, nullable=True)
    front_file_id = Column(String, nullable=True)
    back_file_id = Column(String, nullable=True)
    left_file_id = Column(String, nullable=True)
    right_file_id = Column(String, nullable=True)
    transforms_json = Column(Text, nullable=True)
    quantities_json = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)


Index('ix_customer_designs_created_at', CustomerDesign.created_at)
Index('ix_customer_designs_customer_email', CustomerDesign.customer_email)

Base.metadata.create_all(engine)

# Plain columns a caller may set directly; transforms/quantities are JSON-encoded.
_TEXT_FIELDS = (
    "customer_id", "customer_email", "product_id", "product_title", "design_name",
    "decoration_type", "status", "notes", "front_file_id", "back_file_id",
    "left_file_id", "right_file_id",
)
_JSON_FIELDS = {"transforms": "transforms_json", "quantities": "quantities_json"}


def _now() -> datetime:
    return datetime.utcnow()


def generate_design_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"design_{int(time.time() * 1000)}_{suffix}"


def _dumps(value: Any) -> Optional[str]:
    return json.dumps(value, ensure_ascii=False) if value else None


def _loads(value: Optional[str]) -> Any:
    return json.loads(value) if value else None


def _to_dict(d: CustomerDesign) -> Dict[str, Any]:
    out = {f: getattr(d, f) for f in _TEXT_FIELDS}
    out["id"] = d.id
    out["transforms"] = _loads(d.transforms_json)
    out["quantities"] = _loads(d.quantities_json)
    out["created_at"] = d.created_at.isoformat() + "Z"
    out["updated_at"] = d.updated_at.isoformat() + "Z"
    return out


def create_customer_design(data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        with SessionLocal() as session:
            d = CustomerDesign(
                id=data.get("id") or generate_design_id(),
                status=data.get("status") or "draft",
                transforms_json=_dumps(data.get("transforms")),
                quantities_json=_dumps(data.get("quantities")),
                created_at=_now(),
                updated_at=_now(),
            )
            for f in _TEXT_FIELDS:
                if f != "status":
                    setattr(d, f, data.get(f) or None)
            session.add(d)
            session.commit()
            return {"success": True, "design": _to_dict(d)}
    except SQLAlchemyError as e:
        log.exception("Error creating customer design")
        return {"success": False, "error": str(e)}


def get_customer_design(design_id: str) -> Dict[str, Any]:
    try:
        with SessionLocal() as session:
            d = session.get(CustomerDesign, design_id)
            if not d:
                return {"success": False, "error": "Design not found"}
            return {"success": True, "design": _to_dict(d)}
    except (SQLAlchemyError, ValueError) as e:
        log.exception("Error fetching customer design %s", design_id)
        return {"success": False, "error": str(e)}


def update_customer_design(design_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply only the keys present in `data`; a present key with None clears the column."""
    try:
        with SessionLocal() as session:
            d = session.get(CustomerDesign, design_id)
            if not d:
                return {"success": False, "error": "Design not found"}
            for f in _TEXT_FIELDS:
                if f in data:
                    if f == "status" and not data[f]:
                        continue
                    setattr(d, f, data[f])
            for key, column in _JSON_FIELDS.items():
                if key in data:
                    setattr(d, column, _dumps(data[key]))
            d.updated_at = _now()
            session.commit()
            return {"success": True, "design": _to_dict(d)}
    except SQLAlchemyError as e:
        log.exception("Error updating customer design %s", design_id)
        return {"success": False, "error": str(e)}


def list_customer_designs(filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    filters = filters or {}
    try:
        with SessionLocal() as session:
            q = session.query(CustomerDesign)
            for f in ("customer_id", "customer_email", "product_id", "status"):
                if filters.get(f):
                    q = q.filter(getattr(CustomerDesign, f) == filters[f])
            q = q.order_by(desc(CustomerDesign.created_at))
            q = q.offset(int(filters.get("offset") or 0)).limit(int(filters.get("limit") or 50))
            return {"success": True, "designs": [_to_dict(d) for d in q.all()]}
    except (SQLAlchemyError, ValueError) as e:
        log.exception("Error listing customer designs")
        return {"success": False, "error": str(e)}


def delete_customer_design(design_id: str) -> Dict[str, Any]:
    try:
        with SessionLocal() as session:
            d = session.get(CustomerDesign, design_id)
            if not d:
                return {"success": False, "error": "Design not found"}
            session.delete(d)
            session.commit()
            return {"success": True}
    except SQLAlchemyError as e:
        log.exception("Error deleting customer design %s", design_id)
        return {"success": False, "error": str(e)}
