import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Catalog Files ---
STOCK_CATALOG_FILENAME = os.getenv("STOCK_CATALOG_FILENAME", "stock.csv")
COMBO_CATALOG_FILENAME = os.getenv("COMBO_CATALOG_FILENAME", "combos.csv")

# --- Source Export Prefixes ---
ML_READY_TO_PRINT_PREFIX = os.getenv("ML_READY_TO_PRINT_PREFIX", "ML_ready_to_print_")
ML_AGREEMENT_PREFIX = os.getenv("ML_AGREEMENT_PREFIX", "ML_agreement_")
TN_HOGAR_PREFIX = os.getenv("TN_HOGAR_PREFIX", "TN_hogar_")
TN_GASTRO_PREFIX = os.getenv("TN_GASTRO_PREFIX", "TN_gastro_")
SLA_FILENAME_PREFIX = os.getenv("SLA_FILENAME_PREFIX", "ML_sla_")
OUTPUT_FILENAME_BASE = os.getenv("OUTPUT_FILENAME_BASE", "pickit")

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Runtime ---
WAREHOUSE_TIMEZONE = os.getenv("WAREHOUSE_TIMEZONE", "America/Argentina/Buenos_Aires")
# Empty means one worker per registered source.
MAX_WORKERS = int(os.getenv("MAX_WORKERS") or 0) or None
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT") or 0) or None

# --- Shared Business Logic ---
# Orders merged into a cart need at least this many distinct SKUs.
MIN_CART_SKUS = int(os.getenv("MIN_CART_SKUS", "3"))

# Explicit registration order for sources; merge order follows it.
SOURCE_ORDER = [
    "ML ready_to_print",
    "ML agreement",
    "KT HOGAR",
    "KT GASTRO",
]

MANUAL_ORIGIN = "MANUAL"

# Maps raw export headers to the internal schema.
STOCK_COLUMNS = {
    "SKU": "sku",
    "Producto": "description",
    "Proveedor": "supplier",
    "SubRubro": "subcategory",
    "Unidad": "unit",
    "Stock": "available_quantity",
}

COMBO_COLUMNS = {
    "SKU": "parent_sku",
    "SKU Componente": "component_sku",
    "Cantidad": "multiplier",
}
