import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pickit import data_handler
from pickit.schemas import PickitResult

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for report pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, test_mode: bool = False, output_dir: Path | None = None):
        self.report_type = report_type
        self.test_mode = test_mode
        self.output_dir = output_dir
        # Per-source status for the final summary; None means the source failed.
        self.status_summary: dict[str, int | None] = {}

    def run(self) -> PickitResult | None:
        """
        Orchestrates the pipeline execution. Fatal conditions raised by
        extract/transform propagate to the caller.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()

        # --- 2. TRANSFORM ---
        result = self.transform(raw_data)
        if result is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(result)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> Any:
        """
        Collects the raw snapshot from every source.
        Should also populate self.status_summary as it processes sources.
        """
        pass

    @abstractmethod
    def transform(self, raw_data: Any) -> PickitResult | None:
        """
        Turns the snapshot into the final result. Returns None when the
        result fails schema validation.
        """
        pass

    def load(self, result: PickitResult):
        """
        Logs the run summary, saves data to disk and posts to webhook.
        """
        # 1. Print Status Summary
        logger.info("\n--- Final Status Summary ---")
        for source, count in self.status_summary.items():
            logger.info(f"{source}: {count if count is not None else 'Failed'}")
        for line in result.summary.log_lines():
            logger.info(line)

        # 2. Save Outputs (CSV/JSON)
        if result.pick_list:
            data_handler.save_outputs(result, self.report_type, self.output_dir)
        else:
            logger.warning("No data to save to disk.")

        # 3. Post to Webhook
        if not self.test_mode:
            data_handler.post_to_webhook(
                result,
                metadata={"sources": self.status_summary},
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
