from __future__ import annotations

import asyncio
import json

import pytest

from inspection_map.common.config_loader import PipelineConfig
from inspection_map.common.errors import CoordinateParseError, NetworkError, ParseError
from inspection_map.common.models import Coordinate, InspectionRecord
from inspection_map.pipeline.inspections import (
    InspectionPipeline,
    fetch_filtered_coordinates,
    fetch_filtered_coordinates_async,
    filter_records,
    parse_records,
    project_coordinates,
    run_pipeline_on_payload,
    to_coordinate,
    truncate_records,
)

ENDPOINT = "https://data.example.org/resource/inspections.json"


class FakeJsonClient:
    def __init__(self, payload=None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[str] = []

    def get_json(self, url: str, **_kwargs):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.payload


def _row(risk: str, lat: str = "41.8", lon: str = "-87.6", **extra) -> dict:
    return {"risk": risk, "latitude": lat, "longitude": lon, **extra}


def test_three_record_scenario_excludes_low_risk():
    payload = [
        _row("Risk 1", "41.8", "-87.6"),
        _row("Risk 3 (Low)", "41.9", "-87.7"),
        _row("Risk 2", "41.7", "-87.5"),
    ]

    result = fetch_filtered_coordinates(ENDPOINT, client=FakeJsonClient(payload))

    assert result == (Coordinate(41.8, -87.6), Coordinate(41.7, -87.5))


def test_150_records_are_truncated_to_100():
    payload = [_row("Risk 1") for _ in range(150)]

    result = fetch_filtered_coordinates(ENDPOINT, client=FakeJsonClient(payload))

    assert len(result) == 100


def test_malformed_json_raises_parse_error_and_returns_nothing():
    client = FakeJsonClient(error=ParseError("Invalid JSON payload"))

    with pytest.raises(ParseError):
        fetch_filtered_coordinates(ENDPOINT, client=client)


def test_network_failure_propagates():
    client = FakeJsonClient(error=NetworkError("connection refused"))

    with pytest.raises(NetworkError):
        fetch_filtered_coordinates(ENDPOINT, client=client)
    assert client.calls == [ENDPOINT]


def test_non_numeric_latitude_drops_only_that_record():
    payload = [
        _row("Risk 1", "41.8", "-87.6"),
        _row("Risk 1", "not-a-number", "-87.7"),
        _row("Risk 2", "41.7", "-87.5"),
    ]

    result = fetch_filtered_coordinates(ENDPOINT, client=FakeJsonClient(payload))

    assert result == (Coordinate(41.8, -87.6), Coordinate(41.7, -87.5))


def test_records_beyond_limit_never_affect_output():
    head = [_row("Risk 1", str(40 + i / 100), "-87.6") for i in range(100)]
    tail_a = [_row("Risk 2", "1.0", "1.0")]
    tail_b = [{"risk": "Risk 1", "latitude": "x", "longitude": "y", "extra": True} for _ in range(20)]

    first, _ = run_pipeline_on_payload(head + tail_a)
    second, _ = run_pipeline_on_payload(head + tail_b)

    assert first == second
    assert len(first) == 100


@pytest.mark.parametrize(
    "tail",
    [
        [{"risk": "Risk 1", "latitude": "41.8"}],
        [{"risk": None, "latitude": "41.8", "longitude": "-87.6"}],
        ["not an object", 7, None],
    ],
)
def test_malformed_records_beyond_limit_are_never_parsed(tail):
    head = [_row("Risk 1") for _ in range(100)]

    coordinates, stats = run_pipeline_on_payload(head + tail)

    assert len(coordinates) == 100
    assert stats.rows_in == 100 + len(tail)
    assert stats.rows_truncated == len(tail)


def test_malformed_record_within_limit_still_fails():
    payload = [_row("Risk 1") for _ in range(3)] + [{"risk": "Risk 1", "latitude": "41.8"}]

    with pytest.raises(ParseError):
        run_pipeline_on_payload(payload, record_limit=4)


def test_truncation_happens_before_filtering():
    payload = [_row("Risk 3 (Low)") for _ in range(100)] + [_row("Risk 1")]

    coordinates, stats = run_pipeline_on_payload(payload)

    assert coordinates == ()
    assert stats.rows_truncated == 1
    assert stats.rows_excluded == 100


def test_output_preserves_relative_order_and_duplicates():
    payload = [
        _row("Risk 2", "41.1", "-87.1"),
        _row("Risk 1", "41.1", "-87.1"),
        _row("Risk 3 (Low)", "41.2", "-87.2"),
        _row("Risk 1", "41.3", "-87.3"),
    ]

    coordinates, stats = run_pipeline_on_payload(payload)

    assert coordinates == (Coordinate(41.1, -87.1), Coordinate(41.1, -87.1), Coordinate(41.3, -87.3))
    assert stats.rows_out == 3
    assert stats.rows_excluded == 1


@pytest.mark.parametrize("risk", ["risk 3 (low)", "Risk 3 (Low) ", " Risk 3 (Low)", "Risk 3"])
def test_risk_filter_is_exact_match(risk):
    records = [InspectionRecord(risk=risk, latitude="1", longitude="2")]

    assert filter_records(records) == records


def test_excluded_risks_are_injectable():
    records = [
        InspectionRecord(risk="Risk 1 (High)", latitude="1", longitude="2"),
        InspectionRecord(risk="Risk 3 (Low)", latitude="3", longitude="4"),
    ]

    kept = filter_records(records, excluded_risks=["Risk 1 (High)"])

    assert [r.risk for r in kept] == ["Risk 3 (Low)"]
    assert filter_records(records, excluded_risks=[]) == records


def test_truncate_is_noop_for_short_input():
    records = [InspectionRecord(risk="Risk 1", latitude="1", longitude="2")]

    assert truncate_records(records, 100) == records
    assert truncate_records([], 100) == []


def test_parse_ignores_unknown_fields():
    records = parse_records([_row("Risk 1", inspection_id="2345", dba_name="Cafe", zip="60601")])

    assert records == [InspectionRecord(risk="Risk 1", latitude="41.8", longitude="-87.6")]


def test_parse_accepts_unquoted_numbers():
    records = parse_records([{"risk": "Risk 1", "latitude": 41.8, "longitude": -87.6}])

    assert to_coordinate(records[0]) == Coordinate(41.8, -87.6)


@pytest.mark.parametrize(
    "payload",
    [
        {"risk": "Risk 1"},
        "not an array",
        [["Risk 1", "41.8", "-87.6"]],
        [{"risk": "Risk 1", "latitude": "41.8"}],
        [{"risk": None, "latitude": "41.8", "longitude": "-87.6"}],
        [{"risk": "Risk 1", "latitude": {"v": 1}, "longitude": "-87.6"}],
    ],
)
def test_parse_rejects_malformed_payloads(payload):
    with pytest.raises(ParseError):
        parse_records(payload)


def test_missing_field_aborts_the_whole_batch():
    payload = [_row("Risk 1"), {"risk": "Risk 2", "latitude": "41.7"}]

    with pytest.raises(ParseError):
        fetch_filtered_coordinates(ENDPOINT, client=FakeJsonClient(payload))


@pytest.mark.parametrize("lat", ["nan", "inf", "-Infinity", "", "41.8N"])
def test_to_coordinate_rejects_non_finite_or_garbage(lat):
    with pytest.raises(CoordinateParseError):
        to_coordinate(InspectionRecord(risk="Risk 1", latitude=lat, longitude="-87.6"))


def test_project_coordinates_counts_dropped_records():
    payload = [_row("Risk 1"), _row("Risk 1", lon="west"), _row("Risk 1", lat="nan")]

    coordinates, stats = run_pipeline_on_payload(payload)

    assert len(coordinates) == 1
    assert stats.rows_dropped == 2


def test_project_coordinates_does_not_mutate_input():
    records = (InspectionRecord(risk="Risk 1", latitude="1.5", longitude="2.5"),)

    result = project_coordinates(records)

    assert records == (InspectionRecord(risk="Risk 1", latitude="1.5", longitude="2.5"),)
    assert result == (Coordinate(1.5, 2.5),)


def test_same_payload_gives_identical_output():
    payload = json.loads(json.dumps([_row("Risk 1"), _row("Risk 2", "41.9", "-87.9")]))
    client = FakeJsonClient(payload)

    first = fetch_filtered_coordinates(ENDPOINT, client=client)
    second = fetch_filtered_coordinates(ENDPOINT, client=client)

    assert first == second
    assert len(client.calls) == 2


def test_custom_record_limit():
    payload = [_row("Risk 1") for _ in range(10)]

    result = fetch_filtered_coordinates(ENDPOINT, client=FakeJsonClient(payload), record_limit=3)

    assert len(result) == 3


def test_async_fetch_runs_off_the_event_loop():
    payload = [_row("Risk 1"), _row("Risk 3 (Low)")]

    result = asyncio.run(fetch_filtered_coordinates_async(ENDPOINT, client=FakeJsonClient(payload)))

    assert result == (Coordinate(41.8, -87.6),)


def test_inspection_pipeline_uses_bound_config():
    payload = [_row("Risk 1"), _row("Risk 2"), _row("Risk 3 (Low)")]
    client = FakeJsonClient(payload)
    pipeline = InspectionPipeline(ENDPOINT, client, PipelineConfig(record_limit=2, excluded_risks=("Risk 2",)))

    coordinates, stats = pipeline.run()

    assert coordinates == (Coordinate(41.8, -87.6),)
    assert stats.rows_in == 3
    assert stats.rows_truncated == 1
    assert client.calls == [ENDPOINT]


def test_inspection_pipeline_run_async_propagates_fetch_errors():
    pipeline = InspectionPipeline(ENDPOINT, FakeJsonClient(error=NetworkError("down")))

    with pytest.raises(NetworkError):
        asyncio.run(pipeline.run_async())
