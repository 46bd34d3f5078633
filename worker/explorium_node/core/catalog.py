"""Static lookups for the Explorium API surface."""

from typing import Dict, Tuple

from explorium_node.core.errors import UnknownEnrichmentType, ValidationError

ENTITY_TYPES: Tuple[str, ...] = ("businesses", "prospects")

MATCH_PATHS = {
    "businesses": "/v1/businesses/match",
    "prospects": "/v1/prospects/match",
}
FETCH_PATHS = {
    "businesses": "/v1/businesses",
    "prospects": "/v1/prospects",
}
EVENTS_PATHS = {
    "businesses": "/v1/businesses/events",
    "prospects": "/v1/prospects/events",
}
AUTOCOMPLETE_PATH = "/v1/businesses/autocomplete"

ENRICHMENT_ENDPOINTS: Dict[str, Dict[str, str]] = {
    "businesses": {
        "firmographics": "/v1/businesses/firmographics/bulk_enrich",
        "technographics": "/v1/businesses/technographics/bulk_enrich",
        "company_ratings": "/v1/businesses/company_ratings_by_employees/bulk_enrich",
        "financial_metrics": "/v1/businesses/financial_indicators/bulk_enrich",
        "funding_and_acquisitions": "/v1/businesses/funding_and_acquisition/bulk_enrich",
        "challenges": "/v1/businesses/pc_business_challenges_10k/bulk_enrich",
        "competitive_landscape": "/v1/businesses/pc_competitive_landscape_10k/bulk_enrich",
        "strategic_insights": "/v1/businesses/pc_strategy_10k/bulk_enrich",
        "workforce_trends": "/v1/businesses/workforce_trends/bulk_enrich",
        "linkedin_posts": "/v1/businesses/linkedin_posts/bulk_enrich",
        "website_changes": "/v1/businesses/website_changes/bulk_enrich",
        "website_keywords": "/v1/businesses/company_website_keywords/bulk_enrich",
    },
    "prospects": {
        "contacts": "/v1/prospects/contacts_information/bulk_enrich",
        "linkedin_posts": "/v1/prospects/linkedin_posts/bulk_enrich",
        "profiles": "/v1/prospects/profiles/bulk_enrich",
    },
}

BUSINESS_EVENT_TYPES = (
    "ipo_announcement",
    "new_funding_round",
    "new_investment",
    "merger_and_acquisitions",
    "new_product",
    "new_office",
    "closing_office",
    "new_partnership",
    "employee_joined_company",
    "company_award",
    "outages_and_security_breaches",
    "cost_cutting",
    "lawsuits_and_legal_issues",
    "hiring_in_engineering_department",
    "hiring_in_sales_department",
    "hiring_in_marketing_department",
    "increase_in_engineering_department",
    "increase_in_sales_department",
    "increase_in_marketing_department",
    "increase_in_all_departments",
    "decrease_in_engineering_department",
    "decrease_in_sales_department",
    "decrease_in_all_departments",
    "increase_in_operations_department",
)
PROSPECT_EVENT_TYPES = (
    "prospect_changed_role",
    "prospect_changed_company",
    "prospect_job_start_anniversary",
)

AUTOCOMPLETE_FIELDS = (
    "country",
    "country_code",
    "region_country_code",
    "google_category",
    "naics_category",
    "linkedin_category",
    "company_tech_stack_tech",
    "company_tech_stack_categories",
    "job_title",
    "company_size",
    "company_revenue",
    "number_of_locations",
    "company_age",
    "job_department",
    "job_level",
    "city_region_country",
    "company_name",
    "business_intent_topics",
)


def validate_entity_type(entity_type: object) -> str:
    if entity_type not in ENTITY_TYPES:
        raise ValidationError(f"type must be one of {', '.join(ENTITY_TYPES)}, got {entity_type!r}")
    return entity_type  # type: ignore[return-value]


def id_list_key(entity_type: str) -> str:
    """Request body key holding the ID list, e.g. ``business_ids``."""
    return "prospect_ids" if entity_type == "prospects" else "business_ids"


def id_field(entity_type: str) -> str:
    """Identity key of a single enriched record, e.g. ``business_id``."""
    return "prospect_id" if entity_type == "prospects" else "business_id"


def enrichment_path(entity_type: str, enrichment: str) -> str:
    try:
        return ENRICHMENT_ENDPOINTS[entity_type][enrichment]
    except KeyError as exc:
        raise UnknownEnrichmentType(f"Unknown enrichment type {enrichment!r} for {entity_type}") from exc
