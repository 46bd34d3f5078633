import pytest

from explorium_node.core.config import Settings
from explorium_node.core.errors import UnknownOperation, UpstreamError, ValidationError
from explorium_node.jobs import operations


class FakeClient:
    """Records descriptors and answers through a handler; handlers may raise."""

    def __init__(self, handler):
        self.handler = handler
        self.sent = []

    def send(self, descriptor):
        self.sent.append(descriptor)
        return self.handler(descriptor)


def make_settings(**overrides):
    return Settings(explorium_api_key="key", **overrides)


def echo_ids(descriptor):
    key = "business_ids" if "business_ids" in descriptor.body else "prospect_ids"
    id_field = key[:-1]
    return {"data": [{id_field: i, "data": {descriptor.path: True}} for i in descriptor.body[key]]}


def test_run_match_one_record_per_chunk():
    client = FakeClient(lambda d: {"matched_businesses": [{"input": b} for b in d.body["businesses_to_match"]]})
    params = {"type": "businesses", "businesses_to_match": [{"name": f"Co {i}"} for i in range(3)]}

    output = operations.run_operation(client, "match", params, make_settings(match_chunk_size=2))

    assert len(client.sent) == 2
    assert len(output) == 2
    assert output[1]["matched_businesses"] == [{"input": {"name": "Co 2"}}]


def test_run_enrich_merges_all_enrichments_across_chunks():
    client = FakeClient(echo_ids)
    params = {
        "type": "businesses",
        "enrichment": ["firmographics", "technographics"],
        "business_ids": [f"b{i}" for i in range(3)],
    }

    [output] = operations.run_operation(client, "enrich", params, make_settings(enrich_chunk_size=2))

    assert [d.path for d in client.sent] == [
        "/v1/businesses/firmographics/bulk_enrich",
        "/v1/businesses/firmographics/bulk_enrich",
        "/v1/businesses/technographics/bulk_enrich",
        "/v1/businesses/technographics/bulk_enrich",
    ]
    assert [record["business_id"] for record in output["enriched_data"]] == ["b0", "b1", "b2"]
    assert output["enriched_data"][2]["data"] == {
        "/v1/businesses/firmographics/bulk_enrich": True,
        "/v1/businesses/technographics/bulk_enrich": True,
    }
    assert [len(entry["response"]) for entry in output["enrichmentsResponse"]] == [2, 2]


def failing_firmographics(descriptor):
    if "firmographics" in descriptor.path:
        raise UpstreamError(500, {"detail": "down"})
    return echo_ids(descriptor)


def test_run_enrich_continues_after_failed_enrichment():
    client = FakeClient(failing_firmographics)
    params = {"type": "businesses", "enrichment": ["firmographics", "technographics"], "business_ids": ["b1"]}

    [output] = operations.run_operation(client, "enrich", params, make_settings())

    failed, succeeded = output["enrichmentsResponse"]
    assert failed["enrichment_type"] == "firmographics"
    assert failed["response"] is None
    assert "status: 500" in failed["error"]
    assert succeeded["hasData"] is True
    assert output["enriched_data"] == [
        {"business_id": "b1", "data": {"/v1/businesses/technographics/bulk_enrich": True}}
    ]


def test_run_enrich_abort_policy_propagates():
    client = FakeClient(failing_firmographics)
    params = {"type": "businesses", "enrichment": ["firmographics", "technographics"], "business_ids": ["b1"]}

    with pytest.raises(UpstreamError):
        operations.run_operation(client, "enrich", params, make_settings(enrichment_failure_policy="abort"))
    assert len(client.sent) == 1


def test_chunk_failure_aborts_remaining_chunks():
    def handler(descriptor):
        if descriptor.body["prospect_ids"][0] == "p2":
            raise UpstreamError(429, {"detail": "slow down"})
        return {"data": []}

    client = FakeClient(handler)
    params = {"type": "prospects", "prospect_ids": ["p0", "p1", "p2", "p3", "p4"], "event_types": ["prospect_changed_role"]}

    with pytest.raises(UpstreamError):
        operations.run_operation(client, "events", params, make_settings(events_chunk_size=2))
    assert len(client.sent) == 2


def test_run_events_repeats_metadata():
    client = FakeClient(lambda d: {"output_events": [], "ids": d.body["business_ids"]})
    params = {
        "type": "businesses",
        "business_ids": [f"b{i}" for i in range(41)],
        "event_types": ["new_office"],
        "timestamp_from": "2024-01-01",
    }

    output = operations.run_operation(client, "events", params, make_settings())

    assert [len(record["ids"]) for record in output] == [40, 1]
    assert all(d.body["event_types"] == ["new_office"] for d in client.sent)


def test_run_fetch_single_page_and_extract():
    page = {"data": [{"business_id": "b1"}, {"business_id": "b2"}], "total_results": 2}
    client = FakeClient(lambda d: page)

    assert operations.run_operation(client, "fetch", {"type": "businesses"}, make_settings()) == [page]
    extracted = operations.run_operation(client, "fetch", {"type": "businesses", "extract_data": True}, make_settings())
    assert extracted == page["data"]
    assert client.sent[0].body["page"] == 1


def test_run_fetch_auto_paginates():
    def handler(descriptor):
        page = descriptor.body["page"]
        return {"data": [{"prospect_id": f"{page}-{i}"} for i in range(descriptor.body["page_size"])]}

    client = FakeClient(handler)
    params = {"type": "prospects", "size": 7, "auto_paginate": True, "extract_data": True}

    output = operations.run_operation(client, "fetch", params, make_settings(max_page_size=3))

    assert len(output) == 7
    assert [d.body["page"] for d in client.sent] == [1, 2, 3]


def test_run_autocomplete_keeps_results_when_one_request_fails():
    def handler(descriptor):
        if descriptor.query["field"] == "job_title":
            raise UpstreamError(400, {"detail": "bad field"})
        return [{"query": descriptor.query["query"], "label": "United States"}]

    client = FakeClient(handler)
    params = {"autocomplete_fields": [{"field": "country", "query": "uni"}, {"field": "job_title", "query": "cto"}]}

    [output] = operations.run_operation(client, "autocomplete", params, make_settings())

    first, second = output["autocomplete_results"]
    assert first["response"][0]["label"] == "United States"
    assert second["response"] is None
    assert "bad field" in second["error"]


def test_autocomplete_validation_happens_before_any_request():
    client = FakeClient(lambda d: [])
    params = {"autocomplete_fields": [{"field": "country", "query": "uni"}, {"field": "", "query": "x"}]}

    with pytest.raises(ValidationError):
        operations.run_operation(client, "autocomplete", params, make_settings())
    assert client.sent == []


def test_validation_errors_fail_before_network():
    client = FakeClient(lambda d: {})
    with pytest.raises(ValidationError):
        operations.run_operation(client, "enrich", {"type": "businesses", "enrichment": ["firmographics"]}, make_settings())
    assert client.sent == []


def test_unknown_operation():
    with pytest.raises(UnknownOperation):
        operations.run_operation(FakeClient(lambda d: {}), "delete", {"type": "businesses"}, make_settings())


def test_missing_parameters():
    with pytest.raises(ValidationError, match="without setting parameters"):
        operations.run_operation(FakeClient(lambda d: {}), "fetch", {}, make_settings())
