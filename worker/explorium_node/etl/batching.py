"""Chunking of ID lists to stay under Explorium's per-request limits."""

import copy
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

MATCH_CHUNK_SIZE = 50
ENRICH_CHUNK_SIZE = 50
EVENTS_CHUNK_SIZE = 40


def chunk_count(total: int, limit: int) -> int:
    if limit <= 0:
        raise ValueError("chunk limit must be positive")
    return math.ceil(total / limit)


def chunk_ids(ids: Sequence[Any], limit: int) -> List[List[Any]]:
    """Slice ``ids`` into consecutive chunks of at most ``limit`` entries."""
    return [list(ids[i * limit:(i + 1) * limit]) for i in range(chunk_count(len(ids), limit))]


def chunk_bodies(
    ids: Sequence[Any],
    limit: int,
    id_key: str,
    extra: Optional[Mapping[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """Build one request body per chunk, repeating ``extra`` unchanged on each."""
    bodies = []
    for chunk in chunk_ids(ids, limit):
        body: Dict[str, Any] = {id_key: chunk}
        for key, value in (extra or {}).items():
            body[key] = copy.deepcopy(value)
        bodies.append(body)
    logger.debug("Split %d %s into %d chunk(s) of <= %d", len(ids), id_key, len(bodies), limit)
    return bodies
