"""
Tests for the Shopify Admin GraphQL client.
"""

from unittest.mock import Mock, patch

import pytest

from configurator.integrations import shopify_client
from configurator.integrations.shopify_client import ShopifyError, ShopifyUserError


def _response(payload, status_code=200):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    return mock_response


# ============================================================================
# TRANSPORT
# ============================================================================

class TestGraphQLTransport:
    """Tests for _gql request handling."""

    @patch("configurator.integrations.shopify_client.requests.post")
    def test_posts_to_versioned_endpoint(self, mock_post, shop_env):
        mock_post.return_value = _response({"data": {"shop": {"id": "gid://shopify/Shop/1"}}})

        data = shopify_client._gql("query { shop { id } }", {"a": 1})

        assert data == {"shop": {"id": "gid://shopify/Shop/1"}}
        url = mock_post.call_args.args[0]
        kwargs = mock_post.call_args.kwargs
        assert url == "https://test-shop.myshopify.com/admin/api/2025-07/graphql.json"
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
        assert kwargs["json"] == {"query": "query { shop { id } }", "variables": {"a": 1}}

    @patch("configurator.integrations.shopify_client.requests.post")
    def test_user_errors_raise_with_first_message(self, mock_post, shop_env):
        mock_post.return_value = _response({"data": {"productCreate": {
            "product": None,
            "userErrors": [{"field": ["title"], "message": "Title can't be blank"}, {"message": "second"}],
        }}})

        with pytest.raises(ShopifyUserError) as exc:
            shopify_client._gql("mutation", {})

        assert str(exc.value) == "Title can't be blank"
        assert len(exc.value.user_errors) == 2

    @patch("configurator.integrations.shopify_client.requests.post")
    def test_top_level_errors(self, mock_post, shop_env):
        mock_post.return_value = _response({"errors": [{"message": "Throttled"}]})

        with pytest.raises(ShopifyError, match="GraphQL errors"):
            shopify_client._gql("query", {})

    @patch("configurator.integrations.shopify_client.requests.post")
    def test_unauthorized(self, mock_post, shop_env):
        mock_post.return_value = _response({}, status_code=401)

        with pytest.raises(ShopifyError, match="unauthorized"):
            shopify_client._gql("query", {})
        assert mock_post.call_count == 1

    @patch("configurator.integrations.shopify_client.requests.post")
    def test_missing_credentials(self, mock_post, monkeypatch):
        monkeypatch.delenv("SHOPIFY_SHOP_DOMAIN", raising=False)

        with pytest.raises(ShopifyError, match="SHOPIFY_SHOP_DOMAIN"):
            shopify_client._gql("query", {})
        mock_post.assert_not_called()


# ============================================================================
# HELPERS
# ============================================================================

class TestHelpers:
    """Tests for small client helpers."""

    def test_nodes_accepts_both_shapes(self):
        assert shopify_client._nodes({"nodes": [{"id": 1}, None]}) == [{"id": 1}]
        assert shopify_client._nodes({"edges": [{"node": {"id": 2}}, {}]}) == [{"id": 2}]
        assert shopify_client._nodes(None) == []

    def test_to_gid(self):
        assert shopify_client.to_gid("Product", "42") == "gid://shopify/Product/42"
        assert shopify_client.to_gid("Product", "gid://shopify/Product/42") == "gid://shopify/Product/42"

    def test_normalize_shop_domain(self):
        assert shopify_client._normalize_shop_domain(" https://shop.myshopify.com/ ") == "shop.myshopify.com"

    def test_parse_json_value(self):
        assert shopify_client.parse_json_value("[\"Red\"]") == ["Red"]
        assert shopify_client.parse_json_value("plain text") == "plain text"
        assert shopify_client.parse_json_value(None) is None


# ============================================================================
# OPERATIONS
# ============================================================================

class TestOperations:
    """Tests for operations built on _gql."""

    @patch("configurator.integrations.shopify_client._gql")
    def test_get_metaobjects_skips_empty_input(self, mock_gql):
        assert shopify_client.get_metaobjects([]) == []
        mock_gql.assert_not_called()

    @patch("configurator.integrations.shopify_client._gql")
    def test_fulfill_order_without_open_fulfillment_orders(self, mock_gql):
        mock_gql.return_value = {"order": {"fulfillmentOrders": {"nodes": [
            {"id": "gid://shopify/FulfillmentOrder/1", "status": "CLOSED"},
        ]}}}

        with pytest.raises(ShopifyUserError, match="no open fulfillment orders"):
            shopify_client.fulfill_order("1001")
