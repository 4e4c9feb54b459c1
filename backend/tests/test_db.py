"""
Tests for the customer design draft store.
"""

import re
from datetime import datetime, timedelta

from configurator import db


def _create(**data):
    result = db.create_customer_design(data)
    assert result["success"], result
    return result["design"]


class TestCreateAndGet:
    """Tests for creating and reading drafts."""

    def test_generated_id_format(self):
        assert re.fullmatch(r"design_\d+_[a-z0-9]{9}", db.generate_design_id())

    def test_round_trip(self):
        design = _create(
            customer_email="buyer@example.com",
            product_id="gid://shopify/Product/1",
            design_name="Team shirt",
            transforms={"front": {"x": 4, "scale": 1.5}},
            quantities={"M": 10},
        )

        fetched = db.get_customer_design(design["id"])

        assert fetched["success"] is True
        got = fetched["design"]
        assert got["status"] == "draft"
        assert got["design_name"] == "Team shirt"
        assert got["transforms"] == {"front": {"x": 4, "scale": 1.5}}
        assert got["quantities"] == {"M": 10}
        assert got["back_file_id"] is None
        assert got["created_at"].endswith("Z")

    def test_caller_supplied_id_and_status(self):
        design = _create(id="gid://shopify/Metaobject/5", status="pending")

        assert design["id"] == "gid://shopify/Metaobject/5"
        assert design["status"] == "pending"

    def test_missing_design(self):
        assert db.get_customer_design("design_missing") == {"success": False, "error": "Design not found"}


class TestUpdate:
    """Tests for partial updates."""

    def test_only_present_keys_change(self):
        design = _create(design_name="Old", notes="keep me", front_file_id="gid://shopify/MediaImage/1")

        result = db.update_customer_design(design["id"], {"design_name": "New"})

        got = result["design"]
        assert got["design_name"] == "New"
        assert got["notes"] == "keep me"
        assert got["front_file_id"] == "gid://shopify/MediaImage/1"

    def test_explicit_none_clears(self):
        design = _create(notes="remove me", transforms={"front": {}})

        got = db.update_customer_design(design["id"], {"notes": None, "transforms": None})["design"]

        assert got["notes"] is None
        assert got["transforms"] is None

    def test_blank_status_is_ignored(self):
        design = _create(status="pending")

        got = db.update_customer_design(design["id"], {"status": ""})["design"]

        assert got["status"] == "pending"

    def test_update_missing(self):
        assert db.update_customer_design("nope", {"notes": "x"})["success"] is False


class TestListAndDelete:
    """Tests for listing and deleting drafts."""

    def test_filters(self):
        _create(customer_email="a@example.com", status="draft")
        _create(customer_email="a@example.com", status="pending")
        _create(customer_email="b@example.com", status="draft")

        result = db.list_customer_designs({"customer_email": "a@example.com", "status": "draft"})

        assert result["success"] is True
        assert len(result["designs"]) == 1
        assert result["designs"][0]["customer_email"] == "a@example.com"

    def test_newest_first_with_paging(self):
        ids = [_create(customer_id="c1", design_name=str(i))["id"] for i in range(3)]
        base = datetime(2024, 1, 1)
        with db.SessionLocal() as session:
            for offset, design_id in enumerate(ids):
                session.get(db.CustomerDesign, design_id).created_at = base + timedelta(days=offset)
            session.commit()

        names = [d["design_name"] for d in db.list_customer_designs({"customer_id": "c1"})["designs"]]
        page = db.list_customer_designs({"customer_id": "c1", "limit": 1, "offset": 1})["designs"]

        assert names == ["2", "1", "0"]
        assert [d["design_name"] for d in page] == ["1"]

    def test_delete(self):
        design = _create(design_name="temp")

        assert db.delete_customer_design(design["id"]) == {"success": True}
        assert db.get_customer_design(design["id"])["success"] is False
        assert db.delete_customer_design(design["id"]) == {"success": False, "error": "Design not found"}
