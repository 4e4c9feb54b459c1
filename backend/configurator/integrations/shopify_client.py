import json
import logging
import os

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

log = logging.getLogger(__name__)


class ShopifyError(RuntimeError):
    pass


class ShopifyUserError(ShopifyError):
    """A mutation answered with userErrors. The message is the first error, verbatim."""

    def __init__(self, user_errors: list):
        self.user_errors = list(user_errors or [])
        first = (self.user_errors[0] or {}) if self.user_errors else {}
        super().__init__(str(first.get("message") or "Unknown Shopify error"))


def _normalize_shop_domain(val: str) -> str:
    v = (val or "").strip()
    # remove protocol if provided and any stray whitespace or slashes
    if v.lower().startswith("https://"):
        v = v[8:]
    elif v.lower().startswith("http://"):
        v = v[7:]
    v = v.strip().strip("/\t\n\r ")
    return v


def _get_store_config() -> dict:
    """Resolve credentials and endpoints from the environment at call time."""
    shop = _normalize_shop_domain(os.getenv("SHOPIFY_SHOP_DOMAIN", ""))
    if not shop:
        raise ShopifyError("SHOPIFY_SHOP_DOMAIN is not set. Please configure SHOPIFY_SHOP_DOMAIN env var.")
    token = os.getenv("SHOPIFY_ACCESS_TOKEN", "")
    if not token:
        raise ShopifyError("SHOPIFY_ACCESS_TOKEN is not set; authentication with the Admin API is not possible.")
    version = os.getenv("SHOPIFY_API_VERSION", "2025-07")
    return {
        "SHOP": shop,
        "API_VERSION": version,
        "GQL": f"https://{shop}/admin/api/{version}/graphql.json",
        "HEADERS": {"Content-Type": "application/json", "X-Shopify-Access-Token": token},
    }


def _first_user_errors(data: dict | None) -> list:
    for payload in (data or {}).values():
        if isinstance(payload, dict):
            ue = payload.get("userErrors")
            if ue:
                return ue
    return []


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, max=8),
    retry=retry_if_exception_type(requests.exceptions.RequestException),
    reraise=True,
)
def _gql(query: str, variables: dict | None = None) -> dict:
    cfg = _get_store_config()
    r = requests.post(cfg["GQL"], headers=cfg["HEADERS"], json={"query": query, "variables": variables or {}}, timeout=60)
    if r.status_code in (401, 403):
        raise ShopifyError(f"Shopify authentication failed (HTTP {r.status_code}); the access token is unauthorized.")
    r.raise_for_status()
    j = r.json()
    if "errors" in j:
        raise ShopifyError(f"GraphQL errors: {j['errors']}")
    data = j.get("data") or {}
    ue = _first_user_errors(data)
    if ue:
        raise ShopifyUserError(ue)
    return data


def _nodes(conn: dict | None) -> list:
    """Accept both `edges { node }` and `nodes` connection shapes."""
    if not isinstance(conn, dict):
        return []
    if "nodes" in conn:
        return [n for n in (conn.get("nodes") or []) if n]
    return [(e or {}).get("node") for e in (conn.get("edges") or []) if (e or {}).get("node")]


def to_gid(kind: str, value: str) -> str:
    v = str(value or "").strip()
    if v.startswith("gid://"):
        return v
    return f"gid://shopify/{kind}/{v}"


# ---------------- Products ----------------
PRODUCTS_QUERY = """
query getProducts($first: Int!) {
  products(first: $first) {
    nodes { id title handle status productType vendor }
  }
}
"""

PRODUCT_OPTIONS_SCAN = """
query getProductOptions($first: Int!) {
  products(first: $first) {
    nodes { id options { name values } }
  }
}
"""

PRODUCTS_BY_TITLE = """
query listProducts($first: Int!) {
  products(first: $first, sortKey: TITLE) {
    nodes { id title handle status }
  }
}
"""

PRODUCTS_SEARCH = """
query searchProducts($first: Int!, $query: String) {
  products(first: $first, query: $query) {
    nodes { id title handle status }
  }
}
"""

PRODUCT_DETAILS = """
query getProduct($id: ID!) {
  product(id: $id) {
    id title handle description descriptionHtml productType vendor status tags
    options { id name values }
    metafields(first: 25) { nodes { namespace key value } }
    images(first: 10) { nodes { id url altText } }
    variants(first: 250) {
      nodes { id title price sku inventoryQuantity selectedOptions { name value } }
    }
  }
}
"""

PRODUCT_VARIANTS = """
query getProductVariants($id: ID!, $first: Int!) {
  product(id: $id) {
    id
    variants(first: $first) {
      nodes { id title price selectedOptions { name value } }
    }
  }
}
"""

PRODUCT_OPTIONS = """
query getProductOptionNames($id: ID!) {
  product(id: $id) { id options { id name values } }
}
"""

PRODUCT_CREATE = """
mutation productCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product {
      id title handle status
      options { id name values optionValues { id name hasVariants } }
      variants(first: 1) { nodes { id selectedOptions { name value } } }
    }
    userErrors { field message }
  }
}
"""

PRODUCT_OPTIONS_CREATE = """
mutation productOptionsCreate($productId: ID!, $options: [OptionCreateInput!]!) {
  productOptionsCreate(productId: $productId, options: $options) {
    product { id options { id name values optionValues { id name hasVariants } } }
    userErrors { field message }
  }
}
"""

PRODUCT_VARIANTS_BULK_CREATE = """
mutation productVariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkCreate(productId: $productId, variants: $variants) {
    productVariants { id title price }
    userErrors { field message }
  }
}
"""

PRODUCT_VARIANTS_BULK_UPDATE = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants { id price }
    userErrors { field message }
  }
}
"""

PRODUCT_UPDATE = """
mutation productUpdate($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id title status }
    userErrors { field message }
  }
}
"""

PRODUCT_DELETE = """
mutation productDelete($input: ProductDeleteInput!) {
  productDelete(input: $input) {
    deletedProductId
    userErrors { field message }
  }
}
"""

PRODUCT_BY_HANDLE = """
query productByHandle($handle: String!) {
  productByHandle(handle: $handle) {
    id
    variants(first: 250) { nodes { id price title selectedOptions { name value } } }
  }
}
"""

PRODUCT_METAFIELDS = """
query productMetafields($id: ID!, $namespace: String!) {
  product(id: $id) {
    id
    metafields(first: 20, namespace: $namespace) { nodes { key value } }
  }
}
"""


def list_products(first: int = 50) -> list[dict]:
    data = _gql(PRODUCTS_QUERY, {"first": first})
    return _nodes(data.get("products"))


def list_product_options(first: int = 250) -> list[dict]:
    data = _gql(PRODUCT_OPTIONS_SCAN, {"first": first})
    return _nodes(data.get("products"))


def list_products_by_title(first: int = 100) -> list[dict]:
    data = _gql(PRODUCTS_BY_TITLE, {"first": first})
    return _nodes(data.get("products"))


def search_products(term: str, first: int = 20) -> list[dict]:
    data = _gql(PRODUCTS_SEARCH, {"first": first, "query": f"title:*{term}*"})
    return _nodes(data.get("products"))


def get_product(product_id: str) -> dict | None:
    data = _gql(PRODUCT_DETAILS, {"id": to_gid("Product", product_id)})
    product = data.get("product")
    if not product:
        return None
    product = dict(product)
    for key in ("metafields", "images", "variants"):
        product[key] = _nodes(product.get(key))
    return product


def get_product_variants(product_id: str, first: int = 250) -> list[dict]:
    data = _gql(PRODUCT_VARIANTS, {"id": to_gid("Product", product_id), "first": first})
    return _nodes((data.get("product") or {}).get("variants"))


def get_product_option_names(product_id: str) -> list[str]:
    data = _gql(PRODUCT_OPTIONS, {"id": to_gid("Product", product_id)})
    return [o.get("name") for o in ((data.get("product") or {}).get("options") or []) if o.get("name")]


def create_product(product_input: dict) -> dict:
    data = _gql(PRODUCT_CREATE, {"input": product_input})
    product = dict((data.get("productCreate") or {}).get("product") or {})
    product["variants"] = _nodes(product.get("variants"))
    log.info("Created product %s (%s)", product.get("id"), product.get("title"))
    return product


def create_product_options(product_id: str, options: list[dict]) -> dict:
    data = _gql(PRODUCT_OPTIONS_CREATE, {"productId": product_id, "options": options})
    return (data.get("productOptionsCreate") or {}).get("product") or {}


def bulk_create_variants(product_id: str, variants: list[dict]) -> list[dict]:
    data = _gql(PRODUCT_VARIANTS_BULK_CREATE, {"productId": product_id, "variants": variants})
    created = (data.get("productVariantsBulkCreate") or {}).get("productVariants") or []
    log.info("Created %d variants on %s", len(created), product_id)
    return created


def update_variants(product_id: str, variants: list[dict]) -> list[dict]:
    """productVariantsBulkUpdate; each entry carries `id` plus the fields to change."""
    if not variants:
        return []
    data = _gql(PRODUCT_VARIANTS_BULK_UPDATE, {"productId": product_id, "variants": variants})
    return (data.get("productVariantsBulkUpdate") or {}).get("productVariants") or []


def update_product(product_input: dict) -> dict:
    data = _gql(PRODUCT_UPDATE, {"input": product_input})
    return (data.get("productUpdate") or {}).get("product") or {}


def delete_product(product_id: str) -> str | None:
    data = _gql(PRODUCT_DELETE, {"input": {"id": to_gid("Product", product_id)}})
    return (data.get("productDelete") or {}).get("deletedProductId")


def get_product_by_handle(handle: str) -> dict | None:
    data = _gql(PRODUCT_BY_HANDLE, {"handle": handle})
    product = data.get("productByHandle")
    if not product:
        return None
    product = dict(product)
    product["variants"] = _nodes(product.get("variants"))
    return product


def get_product_metafields(product_id: str, namespace: str) -> dict[str, str]:
    data = _gql(PRODUCT_METAFIELDS, {"id": to_gid("Product", product_id), "namespace": namespace})
    return {n.get("key"): n.get("value") for n in _nodes((data.get("product") or {}).get("metafields"))}


# ---------------- Metafields / shop ----------------
METAFIELDS_SET = """
mutation metafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id key namespace value }
    userErrors { field message }
  }
}
"""

SHOP_QUERY = """
query shopInfo {
  shop { id name email myshopifyDomain }
}
"""

SHOP_METAFIELDS = """
query shopMetafields($namespace: String!) {
  shop { id metafields(first: 50, namespace: $namespace) { nodes { key value } } }
}
"""


def set_metafields(metafields: list[dict]) -> list[dict]:
    data = _gql(METAFIELDS_SET, {"metafields": metafields})
    return (data.get("metafieldsSet") or {}).get("metafields") or []


def get_shop() -> dict:
    data = _gql(SHOP_QUERY)
    shop = data.get("shop")
    if not shop:
        raise ShopifyError("Could not get shop information")
    return shop


def get_shop_metafields(namespace: str) -> tuple[str | None, dict[str, str]]:
    """Return (shop_id, {key: value}) for the shop's metafields in a namespace."""
    data = _gql(SHOP_METAFIELDS, {"namespace": namespace})
    shop = data.get("shop") or {}
    return shop.get("id"), {n.get("key"): n.get("value") for n in _nodes(shop.get("metafields"))}


# ---------------- Files (staged uploads) ----------------
STAGED_UPLOADS_CREATE = """
mutation stagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets { url resourceUrl parameters { name value } }
    userErrors { field message }
  }
}
"""

FILE_CREATE = """
mutation fileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      __typename
      ... on GenericFile { id url }
      ... on MediaImage { id image { url } }
    }
    userErrors { field message }
  }
}
"""


def staged_uploads_create(filename: str, mime_type: str, file_size: int | None = None) -> dict:
    inp: dict = {"filename": filename, "mimeType": mime_type, "resource": "FILE", "httpMethod": "POST"}
    if file_size:
        inp["fileSize"] = str(file_size)
    data = _gql(STAGED_UPLOADS_CREATE, {"input": [inp]})
    targets = (data.get("stagedUploadsCreate") or {}).get("stagedTargets") or []
    if not targets:
        raise ShopifyError("No staged target returned")
    return targets[0]


def file_create(files: list[dict]) -> list[dict]:
    data = _gql(FILE_CREATE, {"files": files})
    out = []
    for f in (data.get("fileCreate") or {}).get("files") or []:
        f = f or {}
        url = f.get("url") or ((f.get("image") or {}).get("url"))
        out.append({"id": f.get("id"), "url": url})
    return out


def post_staged_file(url: str, parameters: dict, filename: str, blob: bytes, mime_type: str) -> requests.Response:
    # Signed form fields must precede the file part; requests writes `data` before `files`.
    return requests.post(url, data=parameters, files={"file": (filename, blob, mime_type)}, timeout=120)


# ---------------- Metaobjects ----------------
METAOBJECT_DEFINITION_BY_TYPE = """
query definitionByType($type: String!) {
  metaobjectDefinitionByType(type: $type) { id type }
}
"""

METAOBJECT_DEFINITION_CREATE = """
mutation metaobjectDefinitionCreate($definition: MetaobjectDefinitionCreateInput!) {
  metaobjectDefinitionCreate(definition: $definition) {
    metaobjectDefinition { id }
    userErrors { field message }
  }
}
"""

METAOBJECT_CREATE = """
mutation metaobjectCreate($metaobject: MetaobjectCreateInput!) {
  metaobjectCreate(metaobject: $metaobject) {
    metaobject { id handle type }
    userErrors { field message }
  }
}
"""

METAOBJECT_UPDATE = """
mutation metaobjectUpdate($id: ID!, $metaobject: MetaobjectUpdateInput!) {
  metaobjectUpdate(id: $id, metaobject: $metaobject) {
    metaobject { id }
    userErrors { field message }
  }
}
"""

METAOBJECT_GET = """
query getMetaobject($id: ID!) {
  metaobject(id: $id) { id handle updatedAt fields { key value } }
}
"""

METAOBJECTS_LIST = """
query listMetaobjects($type: String!, $first: Int!) {
  metaobjects(type: $type, first: $first) {
    nodes { id handle updatedAt fields { key value } }
  }
}
"""

METAOBJECT_NODES = """
query getDesigns($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on Metaobject { id handle fields { key value } }
  }
}
"""


def get_metaobject_definition(type_: str) -> dict | None:
    data = _gql(METAOBJECT_DEFINITION_BY_TYPE, {"type": type_})
    return data.get("metaobjectDefinitionByType")


def create_metaobject_definition(definition: dict) -> str | None:
    data = _gql(METAOBJECT_DEFINITION_CREATE, {"definition": definition})
    return ((data.get("metaobjectDefinitionCreate") or {}).get("metaobjectDefinition") or {}).get("id")


def create_metaobject(type_: str, fields: list[dict]) -> dict:
    data = _gql(METAOBJECT_CREATE, {"metaobject": {"type": type_, "fields": fields}})
    return (data.get("metaobjectCreate") or {}).get("metaobject") or {}


def update_metaobject(metaobject_id: str, fields: list[dict]) -> dict:
    data = _gql(METAOBJECT_UPDATE, {"id": metaobject_id, "metaobject": {"fields": fields}})
    return (data.get("metaobjectUpdate") or {}).get("metaobject") or {}


def get_metaobject(metaobject_id: str) -> dict | None:
    data = _gql(METAOBJECT_GET, {"id": metaobject_id})
    return data.get("metaobject")


def list_metaobjects(type_: str, first: int = 100) -> list[dict]:
    data = _gql(METAOBJECTS_LIST, {"type": type_, "first": first})
    return _nodes(data.get("metaobjects"))


def get_metaobjects(ids: list[str]) -> list[dict]:
    if not ids:
        return []
    data = _gql(METAOBJECT_NODES, {"ids": ids})
    return [n for n in (data.get("nodes") or []) if n]


# ---------------- Orders ----------------
_ORDER_SUMMARY_FIELDS = """
id name email phone createdAt updatedAt
displayFulfillmentStatus displayFinancialStatus
totalPriceSet { shopMoney { amount currencyCode } }
customer { id firstName lastName email }
metafield(namespace: "custom", key: "design_ids") { value }
"""

ORDERS_LIST = """
query getOrders($first: Int!, $query: String) {
  orders(first: $first, query: $query, sortKey: CREATED_AT, reverse: true) {
    nodes {
      %s
      lineItems(first: 10) {
        nodes {
          id title quantity
          variant { id title product { id title } }
          customAttributes { key value }
        }
      }
      shippingAddress { firstName lastName address1 city province country zip }
    }
  }
}
""" % _ORDER_SUMMARY_FIELDS

ORDER_GET = """
query getOrder($id: ID!) {
  order(id: $id) {
    %s
    subtotalPriceSet { shopMoney { amount currencyCode } }
    totalShippingPriceSet { shopMoney { amount currencyCode } }
    totalTaxSet { shopMoney { amount currencyCode } }
    lineItems(first: 50) {
      nodes {
        id title quantity
        originalUnitPriceSet { shopMoney { amount currencyCode } }
        variant { id title product { id title featuredImage { url altText } } }
        customAttributes { key value }
      }
    }
    shippingAddress { firstName lastName company address1 address2 city province country zip phone }
    billingAddress { firstName lastName company address1 address2 city province country zip phone }
  }
}
""" % _ORDER_SUMMARY_FIELDS

ORDER_FULFILLMENT_ORDERS = """
query fulfillmentOrders($id: ID!) {
  order(id: $id) {
    id
    fulfillmentOrders(first: 10) { nodes { id status } }
  }
}
"""

FULFILLMENT_CREATE = """
mutation fulfillmentCreate($fulfillment: FulfillmentInput!) {
  fulfillmentCreate(fulfillment: $fulfillment) {
    fulfillment { id status }
    userErrors { field message }
  }
}
"""

DASHBOARD_COUNTS = """
query dashboardCounts {
  productsCount { count }
  ordersCount { count }
}
"""

RECENT_ORDERS = """
query recentOrders($first: Int!) {
  orders(first: $first, sortKey: CREATED_AT, reverse: true) {
    nodes {
      id name createdAt displayFulfillmentStatus
      totalPriceSet { shopMoney { amount currencyCode } }
      customer { firstName lastName }
    }
  }
}
"""


def list_orders(query: str | None = None, first: int = 50) -> list[dict]:
    data = _gql(ORDERS_LIST, {"first": first, "query": query or None})
    out = []
    for o in _nodes(data.get("orders")):
        o = dict(o)
        o["lineItems"] = _nodes(o.get("lineItems"))
        out.append(o)
    return out


def get_order(order_id: str) -> dict | None:
    data = _gql(ORDER_GET, {"id": to_gid("Order", order_id)})
    order = data.get("order")
    if not order:
        return None
    order = dict(order)
    order["lineItems"] = _nodes(order.get("lineItems"))
    return order


def fulfill_order(order_id: str, notify_customer: bool = True) -> dict:
    data = _gql(ORDER_FULFILLMENT_ORDERS, {"id": to_gid("Order", order_id)})
    open_ids = [
        fo.get("id")
        for fo in _nodes((data.get("order") or {}).get("fulfillmentOrders"))
        if (fo.get("status") or "").upper() in ("OPEN", "IN_PROGRESS")
    ]
    if not open_ids:
        raise ShopifyUserError([{"field": ["orderId"], "message": "Order has no open fulfillment orders"}])
    data = _gql(FULFILLMENT_CREATE, {
        "fulfillment": {
            "lineItemsByFulfillmentOrder": [{"fulfillmentOrderId": fid} for fid in open_ids],
            "notifyCustomer": notify_customer,
        }
    })
    return (data.get("fulfillmentCreate") or {}).get("fulfillment") or {}


def get_dashboard_counts() -> dict:
    data = _gql(DASHBOARD_COUNTS)
    return {
        "products": int(((data.get("productsCount") or {}).get("count")) or 0),
        "orders": int(((data.get("ordersCount") or {}).get("count")) or 0),
    }


def list_recent_orders(first: int = 5) -> list[dict]:
    data = _gql(RECENT_ORDERS, {"first": first})
    return _nodes(data.get("orders"))


def parse_json_value(value: str | None):
    """Metafield values are strings; decode JSON ones, keep the rest as-is."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value
