"""Canned storefront data for CONFIGURATOR_FIXTURE_MODE.

Nothing here is consulted unless fixture mode is switched on.
"""
import copy

SIZES = ["XS", "S", "M", "L", "XL", "2XL", "3XL"]

DECORATIONS = [
    {
        "id": "screenprint",
        "name": "Screenprint",
        "description": ("Your design is applied directly onto the products' surface by pushing ink through "
                        "a fine mesh screen. This is one of our most popular decoration methods."),
    },
    {
        "id": "embroidery",
        "name": "Embroidery",
        "description": ("Your design is stitched with thread for a premium, durable finish that's ideal "
                        "for hats, polos, and thicker fabrics."),
    },
]

VARIANTS = [
    {
        "id": "gid://shopify/ProductVariant/1",
        "title": "Small / Default",
        "price": "15.99",
        "sku": "PROD-SMALL-DEFAULT",
        "inventoryQuantity": 100,
        "selectedOptions": [{"name": "Size", "value": "Small"}, {"name": "Color", "value": "Default"}],
    },
    {
        "id": "gid://shopify/ProductVariant/2",
        "title": "Medium / Default",
        "price": "17.99",
        "sku": "PROD-MEDIUM-DEFAULT",
        "inventoryQuantity": 75,
        "selectedOptions": [{"name": "Size", "value": "Medium"}, {"name": "Color", "value": "Default"}],
    },
    {
        "id": "gid://shopify/ProductVariant/3",
        "title": "Large / Default",
        "price": "19.99",
        "sku": "PROD-LARGE-DEFAULT",
        "inventoryQuantity": 50,
        "selectedOptions": [{"name": "Size", "value": "Large"}, {"name": "Color", "value": "Default"}],
    },
]

CUSTOMER_DESIGNS = [
    {
        "id": "design-1",
        "design_name": "Summer T-Shirt Design",
        "product_id": "gid://shopify/Product/12345",
        "product_title": "Classic Cotton T-Shirt",
        "decoration_type": "Screen Print",
        "status": "approved",
        "created_at": "2023-06-15T10:30:00Z",
        "updated_at": "2023-06-16T14:45:00Z",
    },
    {
        "id": "design-2",
        "design_name": "Logo Embroidery",
        "product_id": "gid://shopify/Product/12346",
        "product_title": "Premium Polo Shirt",
        "decoration_type": "Embroidery",
        "status": "pending",
        "created_at": "2023-06-18T09:15:00Z",
        "updated_at": "2023-06-18T09:15:00Z",
    },
]


def sample_product(product_id: str) -> dict:
    return {
        "id": product_id,
        "title": "Sample Product",
        "handle": "sample-product",
        "options": {
            "size": ["Small", "Medium", "Large", "XL"],
            "color": ["Red", "Blue", "Black", "White"],
            "decoration": ["Screen Print", "Embroidery", "Heat Transfer"],
        },
        "metafields": {
            "product_configurator.colors": ["Red", "Blue", "Black", "White"],
            "product_configurator.sizes": ["Small", "Medium", "Large", "XL"],
            "product_configurator.decorations": ["Screen Print", "Embroidery", "Heat Transfer"],
            "product_configurator.base_price": "15.99",
        },
    }


def variants_payload(product_id: str) -> dict:
    return {"variants": copy.deepcopy(VARIANTS), "product": sample_product(product_id)}


def sizes() -> list:
    return list(SIZES)


def decorations() -> list:
    return copy.deepcopy(DECORATIONS)


def customer_designs() -> list:
    return copy.deepcopy(CUSTOMER_DESIGNS)
