"""CLI job that runs one Explorium operation over a list of input items."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from explorium_node.core.config import ConfigError, Settings, get_settings
from explorium_node.core.errors import ExploriumNodeError, UpstreamError
from explorium_node.etl.builders import uses_json_input
from explorium_node.etl.normalize import as_bool, merge_json_inputs
from explorium_node.jobs.operations import OPERATIONS, run_operation
from explorium_node.vendors.explorium import client_from_settings

logger = logging.getLogger(__name__)


def _merged_items(items: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Collapse JSON inputs spread across items into a single item when asked to."""
    first = items[0]
    if len(items) < 2 or not uses_json_input(first) or not as_bool(first.get("merge_json_items")):
        return list(items)
    merged = merge_json_inputs(item.get("json_input") for item in items)
    logger.info("Merged JSON input of %d items into one request", len(items))
    return [{**first, "json_input": merged}]


def execute_items(
    client: Any,
    operation: str,
    items: Sequence[Mapping[str, Any]],
    *,
    continue_on_fail: bool = False,
    settings: Optional[Settings] = None,
) -> List[Dict[str, Any]]:
    """Run ``operation`` once per item and return every output record in order."""
    settings = settings or get_settings()
    if not items:
        return []

    try:
        prepared = _merged_items(items)
    except Exception as exc:  # noqa: BLE001
        if not continue_on_fail:
            raise
        logger.warning("Merging JSON input for %s failed, continuing: %s", operation, exc)
        return [{"error": str(exc)}]

    output: List[Dict[str, Any]] = []
    for position, params in enumerate(prepared):
        try:
            output.extend(run_operation(client, operation, params, settings))
        except Exception as exc:  # noqa: BLE001
            if not continue_on_fail:
                raise
            logger.warning("Item %d of %s failed, continuing: %s", position, operation, exc)
            output.append({"error": str(exc)})
    return output


def _load_items(raw: str) -> List[Dict[str, Any]]:
    payload = json.loads(raw)
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list) and all(isinstance(item, dict) for item in payload):
        return payload
    raise ValueError("parameters must be a JSON object or a list of objects")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run an Explorium API operation")
    parser.add_argument("--operation", required=True, choices=sorted(OPERATIONS), help="Operation to run")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--params", help="Item parameters as a JSON object or list of objects")
    source.add_argument("--params-file", type=Path, help="Path to a JSON file with item parameters")
    parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Emit {'error': ...} records instead of stopping on the first failed item",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        raw = args.params if args.params is not None else args.params_file.read_text(encoding="utf-8")
        items = _load_items(raw)
        settings = get_settings()
        with client_from_settings(settings) as client:
            results = execute_items(
                client,
                args.operation,
                items,
                continue_on_fail=args.continue_on_fail,
                settings=settings,
            )
    except (ConfigError, OSError, ValueError) as exc:
        logger.error("Invalid configuration or parameters: %s", exc)
        return 2
    except UpstreamError as exc:
        logger.error("Explorium request failed: %s", exc)
        return 1
    except ExploriumNodeError as exc:
        logger.error("Operation %s rejected: %s", args.operation, exc)
        return 2

    json.dump(results, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
