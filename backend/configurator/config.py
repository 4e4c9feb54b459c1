import os


def _flag(name: str, default: str = "") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes", "y", "on")


SHOPIFY_SHOP_DOMAIN = os.getenv("SHOPIFY_SHOP_DOMAIN", "")
SHOPIFY_ACCESS_TOKEN = os.getenv("SHOPIFY_ACCESS_TOKEN", "")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2025-07")

# App credentials (Partner/Dev Dashboard). The secret signs app proxy requests and webhooks.
SHOPIFY_API_KEY = os.getenv("SHOPIFY_API_KEY", "")
SHOPIFY_API_SECRET = os.getenv("SHOPIFY_API_SECRET", "")
SHOPIFY_APP_URL = os.getenv("SHOPIFY_APP_URL", "")
SCOPES = os.getenv(
    "SCOPES",
    "read_products,write_products,read_orders,write_orders,read_files,write_files,read_metaobjects,write_metaobjects",
)

# Verify the app proxy signature on public endpoints when a secret is configured.
APP_PROXY_VERIFY = _flag("APP_PROXY_VERIFY", "true")

# Serve canned sample data from the product/design endpoints instead of calling Shopify.
# Only meant for local UI work and demos; never enabled in production.
FIXTURE_MODE = _flag("CONFIGURATOR_FIXTURE_MODE")

DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
DATA_DIR = os.getenv("DATA_DIR", "/app/data")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Each variant is one remote mutation round; above this the wizard warns before generating.
MAX_VARIANT_COMBINATIONS = int(os.getenv("MAX_VARIANT_COMBINATIONS", "100"))
MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "10"))

CONFIG_NAMESPACE = "product_configurator"
SETTINGS_NAMESPACE = "custom"
DESIGN_TYPE = "design"
