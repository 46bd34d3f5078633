"""Per-operation runners: build requests, dispatch them sequentially, assemble output records."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from explorium_node.core.config import Settings, get_settings
from explorium_node.core.errors import UnknownOperation, UpstreamError, ValidationError
from explorium_node.core.models import RequestDescriptor
from explorium_node.etl.builders import (
    autocomplete_descriptor,
    build_autocomplete_requests,
    build_enrichment_request,
    build_events_request,
    build_fetch_request,
    build_match_request,
    enrichment_descriptors,
    events_descriptors,
    fetch_descriptor,
    match_descriptors,
)
from explorium_node.etl.merge import EnrichmentMerger, response_rows
from explorium_node.jobs.pagination import fetch_all_pages

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def send_chunks(client: Any, descriptors: Sequence[RequestDescriptor], label: str) -> List[Any]:
    """Send each chunk in order, waiting for one before the next; the first failure aborts the rest."""
    responses = []
    for index, descriptor in enumerate(descriptors, start=1):
        logger.info("Sending %s chunk %d/%d to %s", label, index, len(descriptors), descriptor.path)
        responses.append(client.send(descriptor))
    return responses


def run_match(client: Any, params: Mapping[str, Any], settings: Settings) -> List[Record]:
    request = build_match_request(params)
    descriptors = match_descriptors(request, settings.match_chunk_size)
    return send_chunks(client, descriptors, f"{request.type} match")


def run_enrich(client: Any, params: Mapping[str, Any], settings: Settings) -> List[Record]:
    request = build_enrichment_request(params)
    merger = EnrichmentMerger(request.type)

    for enrichment in request.enrichments:
        descriptors = enrichment_descriptors(request, enrichment, settings.enrich_chunk_size)
        try:
            responses = send_chunks(client, descriptors, f"{request.type} {enrichment}")
        except UpstreamError as exc:
            if settings.enrichment_failure_policy == "abort":
                raise
            logger.warning("Enrichment %s failed, continuing with the rest: %s", enrichment, exc)
            merger.record_failure(enrichment, exc)
            continue
        merger.record_success(enrichment, responses)

    logger.info(
        "Enriched %d %s across %d enrichment type(s)",
        len(merger.enriched_data),
        request.type,
        len(request.enrichments),
    )
    return [merger.to_output()]


def run_fetch(client: Any, params: Mapping[str, Any], settings: Settings) -> List[Record]:
    request = build_fetch_request(params)
    if request.auto_paginate:
        return fetch_all_pages(client, request, max_page_size=settings.max_page_size)

    response = client.send(fetch_descriptor(request))
    if request.extract_data:
        return response_rows(response)
    return [response]


def run_events(client: Any, params: Mapping[str, Any], settings: Settings) -> List[Record]:
    request = build_events_request(params)
    descriptors = events_descriptors(request, settings.events_chunk_size)
    return send_chunks(client, descriptors, f"{request.type} events")


def run_autocomplete(client: Any, params: Mapping[str, Any], settings: Settings) -> List[Record]:
    queries = build_autocomplete_requests(params)
    results = []
    for query in queries:
        entry: Record = {"field": query.field, "query": query.query}
        try:
            entry["response"] = client.send(autocomplete_descriptor(query))
        except UpstreamError as exc:
            logger.warning("Autocomplete for field=%s failed: %s", query.field, exc)
            entry["response"] = None
            entry["error"] = str(exc)
        results.append(entry)
    return [{"autocomplete_results": results}]


OPERATIONS: Dict[str, Callable[[Any, Mapping[str, Any], Settings], List[Record]]] = {
    "match": run_match,
    "enrich": run_enrich,
    "fetch": run_fetch,
    "events": run_events,
    "autocomplete": run_autocomplete,
}


def run_operation(
    client: Any,
    operation: str,
    params: Optional[Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> List[Record]:
    runner = OPERATIONS.get(operation)
    if runner is None:
        raise UnknownOperation(f"Operation {operation} not found")
    if not params:
        raise ValidationError(f"Operation {operation} cannot be executed without setting parameters")
    return runner(client, params, settings or get_settings())
