"""
Tests for order design summaries and the orders/create webhook handler.
"""

import json

from configurator import orders


def _order(order_id, design_ids=None):
    order = {"id": f"gid://shopify/Order/{order_id}", "name": f"#{order_id}"}
    if design_ids is not None:
        order["metafield"] = {"value": json.dumps(design_ids)}
    return order


def _design(status):
    return {"id": "gid://shopify/Metaobject/1", "fields": [{"key": "status", "value": status}]}


class TestSummarizeDesignStatuses:
    """Tests for rolling design statuses up to one order status."""

    def test_all_approved(self):
        assert orders.summarize_design_statuses(["approved", "APPROVED"]) == "approved"

    def test_any_rejected(self):
        assert orders.summarize_design_statuses(["approved", "rejected", "pending"]) == "rejected"

    def test_mixed_is_pending(self):
        assert orders.summarize_design_statuses(["approved", "in_production"]) == "pending"

    def test_empty_is_pending(self):
        assert orders.summarize_design_statuses([]) == "pending"


class TestOrderQuery:
    def test_combines_status_and_search(self):
        assert orders.build_order_query("unfulfilled", "1001") == (
            "fulfillment_status:unfulfilled AND name:*1001* OR email:*1001*"
        )

    def test_no_filters(self):
        assert orders.build_order_query() is None


class TestListOrders:
    """Tests for the design-aware order list."""

    def test_design_info_and_filters(self, shopify_api):
        shopify_api.list_orders.return_value = [_order(1, ["d1", "d2"]), _order(2)]
        shopify_api.get_metaobjects.return_value = [_design("approved"), _design("approved")]

        all_orders = orders.list_orders()
        with_designs = orders.list_orders(design_status="with_designs")
        without = orders.list_orders(design_status="no_designs")
        rejected = orders.list_orders(design_status="rejected")

        assert all_orders[0]["design_info"] == {"has_designs": True, "design_status": "approved", "design_count": 2}
        assert all_orders[1]["design_info"] == {"has_designs": False, "design_status": None, "design_count": 0}
        assert [o["name"] for o in with_designs] == ["#1"]
        assert [o["name"] for o in without] == ["#2"]
        assert rejected == []

    def test_unparseable_metafield_counts_as_no_designs(self, shopify_api):
        shopify_api.list_orders.return_value = [{"id": "o", "metafield": {"value": "{oops"}}]

        assert orders.list_orders()[0]["design_info"]["has_designs"] is False

    def test_get_order_attaches_designs(self, shopify_api):
        shopify_api.get_order.return_value = _order(5, ["gid://shopify/Metaobject/1"])
        shopify_api.get_metaobjects.return_value = [_design("rejected")]

        order = orders.get_order("5")

        assert [d["status"] for d in order["designs"]] == ["rejected"]

    def test_get_order_missing(self, shopify_api):
        shopify_api.get_order.return_value = None

        assert orders.get_order("5") is None


class TestOrderCreatedWebhook:
    """Tests for linking designs to new orders."""

    PAYLOAD = {
        "id": 5551,
        "line_items": [
            {"properties": [{"name": "_Design ID", "value": "gid://shopify/Metaobject/1"}, {"name": "Color", "value": "Red"}]},
            {"properties": None},
            {"properties": [{"name": "_Design ID", "value": "gid://shopify/Metaobject/2"}]},
        ],
    }

    def test_collect_design_ids(self):
        assert orders.collect_design_ids(self.PAYLOAD) == ["gid://shopify/Metaobject/1", "gid://shopify/Metaobject/2"]

    def test_writes_list_metafield(self, shopify_api):
        out = orders.handle_order_created(self.PAYLOAD)

        assert out == {"ok": True, "design_ids": ["gid://shopify/Metaobject/1", "gid://shopify/Metaobject/2"]}
        shopify_api.set_metafields.assert_called_once_with([{
            "ownerId": "gid://shopify/Order/5551",
            "namespace": "custom",
            "key": "design_ids",
            "type": "list.single_line_text_field",
            "value": json.dumps(["gid://shopify/Metaobject/1", "gid://shopify/Metaobject/2"]),
        }])

    def test_no_designs_writes_nothing(self, shopify_api):
        assert orders.handle_order_created({"id": 1, "line_items": []}) == {"ok": True, "design_ids": []}
        shopify_api.set_metafields.assert_not_called()
