"""Turn host parameters into typed Explorium requests and HTTP request descriptors."""

import logging
from dataclasses import fields
from typing import Any, Dict, List, Mapping, Optional

from explorium_node.core.catalog import (
    AUTOCOMPLETE_FIELDS,
    AUTOCOMPLETE_PATH,
    BUSINESS_EVENT_TYPES,
    EVENTS_PATHS,
    FETCH_PATHS,
    MATCH_PATHS,
    PROSPECT_EVENT_TYPES,
    enrichment_path,
    id_list_key,
    validate_entity_type,
)
from explorium_node.core.errors import ValidationError
from explorium_node.core.models import (
    AutocompleteQuery,
    BusinessIdentifier,
    EnrichmentRequest,
    EventsRequest,
    FetchRequest,
    MatchRequest,
    ProspectIdentifier,
    RequestDescriptor,
)
from explorium_node.etl.batching import (
    ENRICH_CHUNK_SIZE,
    EVENTS_CHUNK_SIZE,
    MATCH_CHUNK_SIZE,
    chunk_bodies,
)
from explorium_node.etl.normalize import (
    as_bool,
    as_int,
    clean_strings,
    collection_entries,
    collection_values,
    exclude_empty_values,
    optional_str,
    parse_json_object,
)

logger = logging.getLogger(__name__)

FETCH_MODES = {"full", "preview"}

# (parameter name, entry sub-key, filter key, entity type)
FETCH_FILTER_RULES = (
    ("country_code", "code", "country_code", "businesses"),
    ("region_country_code", "code", "region_country_code", "businesses"),
    ("city_region_country", "location", "city_region_country", "businesses"),
    ("company_size", "size", "company_size", "businesses"),
    ("company_revenue", "range", "company_revenue", "businesses"),
    ("company_age", "range", "company_age", "businesses"),
    ("google_category", "category", "google_category", "businesses"),
    ("naics_category", "code", "naics_category", "businesses"),
    ("linkedin_category", "category", "linkedin_category", "businesses"),
    ("company_tech_stack_category", "category", "company_tech_stack_category", "businesses"),
    ("company_tech_stack_tech", "tech", "company_tech_stack_tech", "businesses"),
    ("company_name", "name", "company_name", "businesses"),
    ("number_of_locations", "range", "number_of_locations", "businesses"),
    ("website_keywords", "keyword", "website_keywords", "businesses"),
    ("business_id", "id", "business_id", "prospects"),
    ("job_level", "level", "job_level", "prospects"),
    ("job_department", "department", "job_department", "prospects"),
    ("job_title", "title", "job_title", "prospects"),
    ("country_code_prospect", "code", "country_code", "prospects"),
    ("company_country_code", "code", "company_country_code", "prospects"),
    ("company_size_prospects", "size", "company_size", "prospects"),
    ("company_revenue_prospects", "range", "company_revenue", "prospects"),
)
FETCH_BOOLEAN_FILTERS = (
    ("has_email", "prospects"),
    ("has_phone_number", "prospects"),
)


def uses_json_input(params: Mapping[str, Any]) -> bool:
    return as_bool(params.get("use_json_input"))


def _json_body(params: Mapping[str, Any]) -> Dict[str, Any]:
    return parse_json_object(params.get("json_input"), "json_input")


# ---------- match ----------


def build_match_request(params: Mapping[str, Any]) -> MatchRequest:
    entity_type = validate_entity_type(params.get("type", "businesses"))
    body_key = f"{entity_type}_to_match"
    if uses_json_input(params):
        raw_entries = collection_entries(_json_body(params).get(body_key), body_key)
    else:
        raw_entries = collection_entries(params.get(body_key), body_key)

    identifier_cls = BusinessIdentifier if entity_type == "businesses" else ProspectIdentifier
    names = [f.name for f in fields(identifier_cls)]
    identifiers = []
    for entry in raw_entries:
        if not isinstance(entry, Mapping):
            logger.debug("Skipping non-object match entry: %r", entry)
            continue
        identifier = identifier_cls(**{name: optional_str(entry.get(name)) for name in names})
        if identifier.to_payload():
            identifiers.append(identifier)

    if not identifiers:
        noun = "company" if entity_type == "businesses" else "prospect"
        raise ValidationError(f"At least one {noun} must have an identifier")
    return MatchRequest(type=entity_type, identifiers=identifiers)


def match_descriptors(request: MatchRequest, limit: int = MATCH_CHUNK_SIZE) -> List[RequestDescriptor]:
    payloads = [identifier.to_payload() for identifier in request.identifiers]
    path = MATCH_PATHS[request.type]
    return [RequestDescriptor("POST", path, body=body) for body in chunk_bodies(payloads, limit, request.body_key)]


# ---------- enrich ----------


def build_enrichment_request(params: Mapping[str, Any]) -> EnrichmentRequest:
    entity_type = validate_entity_type(params.get("type", "businesses"))
    enrichments = clean_strings(collection_entries(params.get("enrichment"), "enrichment"))
    if not enrichments:
        raise ValidationError("At least one enrichment type must be selected")
    for enrichment in enrichments:
        enrichment_path(entity_type, enrichment)

    id_key = id_list_key(entity_type)
    parameters: Optional[Dict[str, Any]] = None
    if uses_json_input(params):
        body = _json_body(params)
        ids = clean_strings(collection_entries(body.get(id_key), id_key))
        parameters = body.get("parameters") or None
    else:
        ids = collection_values(params.get(id_key), id_key, "id")
        keywords = collection_values(params.get("keywords"), "keywords", "keyword")
        if keywords and "website_keywords" in enrichments:
            parameters = {"keywords": keywords}

    if not ids:
        raise ValidationError(f"At least one ID must be provided in {id_key}")
    return EnrichmentRequest(type=entity_type, enrichments=enrichments, ids=ids, parameters=parameters)


def enrichment_descriptors(
    request: EnrichmentRequest,
    enrichment: str,
    limit: int = ENRICH_CHUNK_SIZE,
) -> List[RequestDescriptor]:
    path = enrichment_path(request.type, enrichment)
    extra = {"parameters": request.parameters} if request.parameters else None
    bodies = chunk_bodies(request.ids, limit, id_list_key(request.type), extra)
    return [RequestDescriptor("POST", path, body=body) for body in bodies]


# ---------- fetch ----------


def build_fetch_filters(entity_type: str, params: Mapping[str, Any]) -> Dict[str, Any]:
    """Assemble the sparse filter map from the structured filter groups."""
    filters: Dict[str, Any] = {}
    for param, subkey, filter_key, rule_type in FETCH_FILTER_RULES:
        if rule_type != entity_type:
            continue
        values = collection_values(params.get(param), param, subkey)
        if values:
            filters[filter_key] = {"values": values}

    if entity_type == "prospects" and "job_title" in filters and as_bool(params.get("include_related_job_titles")):
        filters["job_title"]["include_related_job_titles"] = True

    if entity_type == "businesses":
        topics = collection_values(params.get("business_intent_topics"), "business_intent_topics", "topic")
        if topics:
            intent = {"topics": topics}
            level = optional_str(params.get("business_intent_topics_topic_intent_level"))
            if level:
                intent["topic_intent_level"] = level
            filters["business_intent_topics"] = intent

    for param, rule_type in FETCH_BOOLEAN_FILTERS:
        if rule_type == entity_type and as_bool(params.get(param)):
            filters[param] = {"value": True}
    return filters


def build_fetch_request(params: Mapping[str, Any]) -> FetchRequest:
    entity_type = validate_entity_type(params.get("type", "businesses"))
    if uses_json_input(params):
        source: Mapping[str, Any] = _json_body(params)
        filters = source.get("filters") or {}
        if not isinstance(filters, dict):
            raise ValidationError("filters must be a JSON object")
    else:
        source = params
        filters = build_fetch_filters(entity_type, params)
        additional = parse_json_object(params.get("additional_filters"), "additional_filters")
        filters.update(additional)

    mode = optional_str(source.get("mode")) or "preview"
    if mode not in FETCH_MODES:
        raise ValidationError(f"mode must be one of {sorted(FETCH_MODES)}, got {mode!r}")

    request = FetchRequest(
        type=entity_type,
        mode=mode,
        size=as_int(source.get("size"), "size", 50),
        page_size=as_int(source.get("page_size"), "page_size", 50),
        page=as_int(source.get("page"), "page", 1),
        filters=filters,
        exclude=clean_strings(collection_entries(source.get("exclude"), "exclude")),
        auto_paginate=as_bool(params.get("auto_paginate")),
        extract_data=as_bool(params.get("extract_data")),
    )
    for name in ("size", "page_size", "page"):
        if getattr(request, name) < 1:
            raise ValidationError(f"{name} must be at least 1")
    return request


def fetch_descriptor(
    request: FetchRequest,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> RequestDescriptor:
    body: Dict[str, Any] = {
        "mode": request.mode,
        "size": request.size,
        "page_size": page_size or request.page_size,
        "page": page or request.page,
        "filters": request.filters,
    }
    if request.exclude:
        body["exclude"] = list(request.exclude)
    return RequestDescriptor("POST", FETCH_PATHS[request.type], body=body)


# ---------- events ----------


def build_events_request(params: Mapping[str, Any]) -> EventsRequest:
    entity_type = validate_entity_type(params.get("type", "businesses"))
    id_key = id_list_key(entity_type)
    if uses_json_input(params):
        source: Mapping[str, Any] = _json_body(params)
        ids = clean_strings(collection_entries(source.get(id_key), id_key))
    else:
        source = params
        ids = collection_values(params.get(id_key), id_key, "id")
    event_types = clean_strings(collection_entries(source.get("event_types"), "event_types"))

    if not ids:
        raise ValidationError(f"At least one ID must be provided in {id_key}")
    if not event_types:
        raise ValidationError("At least one event type must be selected")
    known = BUSINESS_EVENT_TYPES if entity_type == "businesses" else PROSPECT_EVENT_TYPES
    unknown = [event_type for event_type in event_types if event_type not in known]
    if unknown:
        logger.warning("Passing through unrecognised %s event types: %s", entity_type, ", ".join(unknown))
    return EventsRequest(
        type=entity_type,
        ids=ids,
        event_types=event_types,
        timestamp_from=optional_str(source.get("timestamp_from")),
        timestamp_to=optional_str(source.get("timestamp_to")),
    )


def events_descriptors(request: EventsRequest, limit: int = EVENTS_CHUNK_SIZE) -> List[RequestDescriptor]:
    extra = exclude_empty_values(
        {
            "event_types": request.event_types,
            "timestamp_from": request.timestamp_from,
            "timestamp_to": request.timestamp_to,
        }
    )
    bodies = chunk_bodies(request.ids, limit, id_list_key(request.type), extra)
    return [RequestDescriptor("POST", EVENTS_PATHS[request.type], body=body) for body in bodies]


# ---------- autocomplete ----------


def build_autocomplete_requests(params: Mapping[str, Any]) -> List[AutocompleteQuery]:
    if uses_json_input(params):
        entries = collection_entries(_json_body(params).get("autocomplete_requests"), "autocomplete_requests")
    else:
        entries = collection_entries(params.get("autocomplete_fields"), "autocomplete_fields")
    if not entries:
        raise ValidationError("At least one autocomplete field is required")

    queries = []
    for position, entry in enumerate(entries, start=1):
        entry = entry if isinstance(entry, Mapping) else {}
        field_name = optional_str(entry.get("field"))
        if not field_name:
            raise ValidationError(f"Autocomplete request #{position} is missing a field")
        if field_name not in AUTOCOMPLETE_FIELDS:
            logger.warning("Autocomplete field %s is not a known field; sending as-is", field_name)
        queries.append(AutocompleteQuery(field=field_name, query=optional_str(entry.get("query")) or ""))
    return queries


def autocomplete_descriptor(query: AutocompleteQuery) -> RequestDescriptor:
    return RequestDescriptor("GET", AUTOCOMPLETE_PATH, query={"field": query.field, "query": query.query})
