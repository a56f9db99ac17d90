import argparse
import logging
import sys

from pickit import settings
from pickit.context import PipelineContext
from pickit.errors import PickitError
from pickit.logger import setup_logger
from pickit.pipelines.picklist import PickitPipeline
from pickit.schemas import ManualEntry


def parse_manual_entry(value: str) -> ManualEntry:
    """Parses a SKU=QTY pair given on the command line."""
    sku, sep, quantity = value.partition("=")
    if not sep or not sku.strip():
        raise argparse.ArgumentTypeError(f"expected SKU=QTY, got '{value}'")
    try:
        return ManualEntry(sku=sku.strip(), quantity=float(quantity))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quantity in '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the consolidated pick list and packing carts.")
    parser.add_argument(
        "--today",
        action="store_true",
        help="Same-day dispatch: drop orders whose SLA is after 23:59:59 today.",
    )
    parser.add_argument(
        "--manual",
        action="append",
        default=[],
        type=parse_manual_entry,
        metavar="SKU=QTY",
        help="Extra demand entered by an operator. Repeatable.",
    )
    parser.add_argument("--test", action="store_true", help="Skip the webhook post.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def run_process(argv: list[str] | None = None) -> int:
    """Main orchestration function to run the entire pick-list process."""
    args = build_parser().parse_args(argv)
    # Configure the package logger; every module logs through it.
    logger = setup_logger("pickit", logging.DEBUG if args.verbose else None)
    logger.info(f"📂 Reading exports from: {settings.INPUT_DIR}")

    try:
        with PipelineContext.from_settings() as context:
            pipeline = PickitPipeline(
                context,
                manual_entries=args.manual,
                same_day=args.today,
                test_mode=args.test,
            )
            result = pipeline.run()
    except PickitError as e:
        logger.error(f"❌ {e}")
        return 1

    if result is None:
        return 1

    logger.info("\n--- Process Finished Successfully ---")
    return 0


if __name__ == "__main__":
    sys.exit(run_process())
