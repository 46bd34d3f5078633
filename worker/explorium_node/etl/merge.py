"""Fold per-enrichment bulk responses into one entity-keyed result set."""

import copy
import logging
from typing import Any, Dict, Iterable, List

from explorium_node.core.catalog import id_field

logger = logging.getLogger(__name__)


def response_rows(response: Any) -> List[Dict[str, Any]]:
    """Return the ``data`` rows of a bulk response, tolerating odd shapes."""
    if not isinstance(response, dict):
        return []
    rows = response.get("data")
    if not isinstance(rows, list):
        return []
    return [row for row in rows if isinstance(row, dict)]


class EnrichmentMerger:
    """Accumulates enriched entities in first-seen order, merging by identity key."""

    def __init__(self, entity_type: str) -> None:
        self.id_key = id_field(entity_type)
        self.enriched_data: List[Dict[str, Any]] = []
        self.enrichments_response: List[Dict[str, Any]] = []
        self._index: Dict[Any, Dict[str, Any]] = {}

    def add_rows(self, rows: Iterable[Dict[str, Any]]) -> None:
        for row in rows:
            entity_id = row.get(self.id_key)
            if entity_id is None:
                logger.warning("Dropping enrichment row without %s: keys=%s", self.id_key, sorted(row))
                continue

            try:
                hash(entity_id)
            except TypeError:
                logger.warning("Dropping enrichment row with unhashable %s: %r", self.id_key, entity_id)
                continue

            existing = self._index.get(entity_id)
            if existing is None:
                record = copy.deepcopy(row)
                if not isinstance(record.get("data"), dict):
                    record["data"] = {}
                self._index[entity_id] = record
                self.enriched_data.append(record)
                continue

            data = row.get("data")
            if isinstance(data, dict):
                existing["data"].update(copy.deepcopy(data))

    def record_success(self, enrichment: str, responses: List[Any]) -> None:
        rows: List[Dict[str, Any]] = []
        for response in responses:
            rows.extend(response_rows(response))
        self.add_rows(rows)
        self.enrichments_response.append(
            {"enrichment_type": enrichment, "response": responses, "hasData": bool(rows)}
        )

    def record_failure(self, enrichment: str, error: Exception) -> None:
        self.enrichments_response.append(
            {"enrichment_type": enrichment, "response": None, "hasData": False, "error": str(error)}
        )

    def to_output(self) -> Dict[str, Any]:
        return {
            "enrichmentsResponse": self.enrichments_response,
            "enriched_data": self.enriched_data,
        }
