import json
import logging
from pathlib import Path
import pandas as pd
import requests

from . import settings
from . import utils
from .schemas import PickListItem, PickitResult

logger = logging.getLogger(__name__)


def pick_list_frame(result: PickitResult) -> pd.DataFrame:
    rows = [item.model_dump(mode="json", by_alias=True) for item in result.pick_list]
    columns = [info.alias for info in PickListItem.model_fields.values()]
    return pd.DataFrame(rows, columns=columns)


def carts_frame(result: PickitResult) -> pd.DataFrame:
    """One row per cart line, carrying the sale number and cart label."""
    rows = []
    for cart in result.carts:
        for item in cart.items:
            rows.append(
                {
                    "Sale Number": cart.sale_number,
                    "Created At": cart.created_at.isoformat() if cart.created_at else "",
                    "Cart": cart.label,
                    "SKU": item.sku,
                    "Quantity": item.quantity,
                    "Description": item.description,
                    "Unit": item.unit,
                }
            )
    return pd.DataFrame(
        rows, columns=["Sale Number", "Created At", "Cart", "SKU", "Quantity", "Description", "Unit"]
    )


def sla_frame(result: PickitResult) -> pd.DataFrame:
    rows = [
        {
            "Sale Number": row.sale_number,
            "Items": row.item_count,
            "SLA": row.sla_status,
            "Dispatch By": row.sla_expected_date.isoformat() if row.sla_expected_date else "",
        }
        for row in result.sla_orders
    ]
    return pd.DataFrame(rows, columns=["Sale Number", "Items", "SLA", "Dispatch By"])


def save_outputs(result: PickitResult, base_name: str, output_dir: Path | None = None) -> dict[str, Path]:
    """Saves the pick list, carts and SLA tables to dated CSVs and, if configured, one JSON file."""
    output_dir = output_dir or settings.OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    frames = {
        "pick_list": pick_list_frame(result),
        "carts": carts_frame(result),
        "sla": sla_frame(result),
    }

    paths = {}
    for name, df in frames.items():
        csv_path = output_dir / f"{base_name}_{name}_{date_suffix}.csv"
        df.to_csv(csv_path, index=False)
        paths[name] = csv_path
        logger.info(f"✅ {name} saved to: {csv_path}")

    if settings.SAVE_JSON_OUTPUT:
        json_path = output_dir / f"{base_name}_{date_suffix}.json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json", by_alias=True), f, indent=2, ensure_ascii=False)
        paths["json"] = json_path
        logger.info(f"✅ JSON output saved to: {json_path}")
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return paths


def post_to_webhook(result: PickitResult, metadata: dict | None = None, report_type: str = "pickit"):
    """
    Posts the run result and a metadata block to the configured webhook.
    Request errors are logged, not raised.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return

    logger.info(f"🚀 Posting {report_type} data to webhook: {settings.WEBHOOK_URL}")

    payload = {
        "reportType": report_type,
        "reportData": result.model_dump(mode="json", by_alias=True),
        "metadata": metadata or {},
    }

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Data successfully posted to webhook.")
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
