from explorium_node.core.errors import UpstreamError
from explorium_node.etl.merge import EnrichmentMerger, response_rows


def test_rows_for_same_entity_are_merged_in_first_seen_order():
    merger = EnrichmentMerger("businesses")

    merger.record_success(
        "firmographics",
        [{"data": [{"business_id": "b1", "data": {"name": "Acme"}}, {"business_id": "b2", "data": {"name": "Globex"}}]}],
    )
    merger.record_success("technographics", [{"data": [{"business_id": "b2", "data": {"tech": ["react"]}}]}])

    output = merger.to_output()
    assert output["enriched_data"] == [
        {"business_id": "b1", "data": {"name": "Acme"}},
        {"business_id": "b2", "data": {"name": "Globex", "tech": ["react"]}},
    ]
    assert [entry["enrichment_type"] for entry in output["enrichmentsResponse"]] == ["firmographics", "technographics"]
    assert all(entry["hasData"] for entry in output["enrichmentsResponse"])


def test_merge_order_does_not_matter_for_disjoint_keys():
    first = {"data": [{"prospect_id": "p1", "data": {"a": 1}}]}
    second = {"data": [{"prospect_id": "p1", "data": {"b": 2}}]}

    forward = EnrichmentMerger("prospects")
    forward.record_success("contacts", [first])
    forward.record_success("profiles", [second])

    backward = EnrichmentMerger("prospects")
    backward.record_success("profiles", [second])
    backward.record_success("contacts", [first])

    assert forward.enriched_data[0]["data"] == backward.enriched_data[0]["data"] == {"a": 1, "b": 2}


def test_later_response_wins_on_overlapping_keys():
    merger = EnrichmentMerger("prospects")
    merger.add_rows([{"prospect_id": "p1", "data": {"email": "old@acme.com"}}])
    merger.add_rows([{"prospect_id": "p1", "data": {"email": "new@acme.com"}}])

    assert merger.enriched_data == [{"prospect_id": "p1", "data": {"email": "new@acme.com"}}]


def test_merging_does_not_mutate_responses():
    response = {"data": [{"business_id": "b1", "data": {"a": 1}}]}
    merger = EnrichmentMerger("businesses")
    merger.record_success("firmographics", [response])
    merger.add_rows([{"business_id": "b1", "data": {"b": 2}}])

    assert response["data"][0]["data"] == {"a": 1}


def test_rows_without_identity_are_dropped(caplog):
    merger = EnrichmentMerger("businesses")
    with caplog.at_level("WARNING"):
        merger.add_rows([{"data": {"a": 1}}])

    assert merger.enriched_data == []
    assert "without business_id" in " ".join(caplog.messages)


def test_empty_and_failed_enrichments_are_recorded():
    merger = EnrichmentMerger("businesses")
    merger.record_success("website_changes", [{"data": []}])
    merger.record_failure("challenges", UpstreamError(500, {"detail": "boom"}))

    outcomes = merger.to_output()["enrichmentsResponse"]
    assert outcomes[0] == {"enrichment_type": "website_changes", "response": [{"data": []}], "hasData": False}
    assert outcomes[1]["response"] is None
    assert outcomes[1]["hasData"] is False
    assert "status: 500" in outcomes[1]["error"]


def test_response_rows_tolerates_unexpected_shapes():
    assert response_rows(None) == []
    assert response_rows({"data": {"not": "a list"}}) == []
    assert response_rows({"data": [{"business_id": "b1"}, "junk"]}) == [{"business_id": "b1"}]


def test_rows_with_unhashable_identity_are_dropped(caplog):
    merger = EnrichmentMerger("businesses")
    with caplog.at_level("WARNING"):
        merger.add_rows([{"business_id": ["b1"], "data": {"a": 1}}, {"business_id": "b2", "data": {"b": 2}}])

    assert merger.enriched_data == [{"business_id": "b2", "data": {"b": 2}}]
    assert "unhashable business_id" in " ".join(caplog.messages)
