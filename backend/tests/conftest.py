"""
Pytest configuration and shared fixtures for the product configurator tests.
"""

import os
import tempfile
from contextlib import ExitStack
from types import SimpleNamespace
from unittest.mock import patch

import pytest

# The engine is built at import time, so point it at a throwaway SQLite file first.
_TMP = tempfile.mkdtemp(prefix="configurator-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["DATA_DIR"] = _TMP
os.environ["SHOPIFY_API_SECRET"] = ""
os.environ.pop("CONFIGURATOR_FIXTURE_MODE", None)

from configurator import db  # noqa: E402
from configurator.integrations import shopify_client  # noqa: E402


SHOPIFY_FUNCTIONS = [
    "list_products",
    "list_product_options",
    "list_products_by_title",
    "search_products",
    "get_product",
    "get_product_variants",
    "get_product_option_names",
    "create_product",
    "create_product_options",
    "bulk_create_variants",
    "update_variants",
    "update_product",
    "delete_product",
    "get_product_by_handle",
    "get_product_metafields",
    "set_metafields",
    "get_shop",
    "get_shop_metafields",
    "staged_uploads_create",
    "file_create",
    "post_staged_file",
    "get_metaobject_definition",
    "create_metaobject_definition",
    "create_metaobject",
    "update_metaobject",
    "get_metaobject",
    "list_metaobjects",
    "get_metaobjects",
    "list_orders",
    "get_order",
    "fulfill_order",
    "get_dashboard_counts",
    "list_recent_orders",
]


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def clean_db():
    """Empty the customer_designs table around every test."""
    with db.SessionLocal() as session:
        session.query(db.CustomerDesign).delete()
        session.commit()
    yield


# ============================================================================
# SHOPIFY FIXTURES
# ============================================================================

@pytest.fixture
def shopify_api():
    """Patch every Admin API operation; tests configure return values per call."""
    with ExitStack() as stack:
        mocks = {name: stack.enter_context(patch.object(shopify_client, name)) for name in SHOPIFY_FUNCTIONS}
        mocks["get_shop"].return_value = {
            "id": "gid://shopify/Shop/1",
            "name": "Test Shop",
            "email": "owner@test-shop.com",
            "myshopifyDomain": "test-shop.myshopify.com",
        }
        mocks["get_shop_metafields"].return_value = ("gid://shopify/Shop/1", {})
        yield SimpleNamespace(**mocks)


@pytest.fixture
def shop_env(monkeypatch):
    """Credentials for tests that exercise the real GraphQL transport."""
    monkeypatch.setenv("SHOPIFY_SHOP_DOMAIN", "https://test-shop.myshopify.com/")
    monkeypatch.setenv("SHOPIFY_ACCESS_TOKEN", "shpat_test")
    monkeypatch.setenv("SHOPIFY_API_VERSION", "2025-07")


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def design_node():
    """A design metaobject as the Admin API returns it."""
    return {
        "id": "gid://shopify/Metaobject/101",
        "handle": "design-101",
        "updatedAt": "2024-05-01T10:00:00Z",
        "fields": [
            {"key": "customer_email", "value": "buyer@example.com"},
            {"key": "status", "value": "pending"},
            {"key": "decoration", "value": "Embroidery"},
            {"key": "product", "value": "gid://shopify/Product/9"},
            {"key": "front_file", "value": "gid://shopify/MediaImage/1"},
            {"key": "transforms", "value": "{\"front\": {\"x\": 10}}"},
        ],
    }


def selected(*pairs):
    """Build a Shopify variant from (option name, value) pairs."""
    return {"id": "gid://shopify/ProductVariant/x", "selectedOptions": [{"name": n, "value": v} for n, v in pairs]}
