"""HTTP entrypoint that runs Explorium operations on behalf of a workflow host."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request

from explorium_node.core.config import ConfigError, get_settings
from explorium_node.core.errors import ExploriumNodeError, UpstreamError
from explorium_node.etl.normalize import as_bool
from explorium_node.jobs.run_operation import execute_items
from explorium_node.vendors.explorium import client_from_settings

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "api_key_configured": bool(settings.explorium_api_key),
                "enrichment_failure_policy": settings.enrichment_failure_policy,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/execute")
def execute() -> Any:
    """
    Run one operation.
    Required JSON fields: operation, and either parameters (object) or items (list of objects)
    Optional: continue_on_fail (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    operation = payload.get("operation")
    if not operation:
        return jsonify({"error": "missing fields: operation"}), 400

    items = payload.get("items")
    if items is None:
        items = [payload.get("parameters") or {}]
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        return jsonify({"error": "items must be a list of objects"}), 400

    try:
        settings = get_settings()
        with client_from_settings(settings) as client:
            results = execute_items(
                client,
                str(operation),
                items,
                continue_on_fail=as_bool(payload.get("continue_on_fail")),
                settings=settings,
            )
    except UpstreamError as exc:
        logger.error("Operation %s failed upstream: %s", operation, exc)
        return jsonify({"error": str(exc), "status": exc.status}), 502
    except ExploriumNodeError as exc:
        return jsonify({"error": str(exc)}), 400
    except ConfigError as exc:
        logger.error("Worker misconfigured: %s", exc)
        return jsonify({"error": str(exc)}), 500

    return jsonify({"data": results}), 200


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
