"""Tests for fallback extraction."""

import pytest

from asset_recovery.config import RecoveryConfig
from asset_recovery.recovery.fallback import extract_fallback

NESTED_TRUNCATED = (
    '{"assets": [{"asset_name": "A", "specifications": "s1", "dims": {"w": 1}}, '
    '{"asset_name": "B", "specifications": "s2", "dims": {"w": 2}}, '
    '{"asset_name": "C", "specif'
)


@pytest.fixture
def config() -> RecoveryConfig:
    return RecoveryConfig()


class TestObjectSpans:
    def test_objects_found_amid_garbage(self, config):
        text = (
            'garbage {"asset_name": "A", "specifications": "s1"} noise '
            '{"asset_name": "B", "specifications": "s2", "tags": ["X"]} {{'
        )
        extraction = extract_fallback(text, config)
        assert extraction.strategy == "object_spans"
        assert [r.name for r in extraction.records] == ["A", "B"]
        assert extraction.records[1].category_tags == ["X"]
        assert extraction.telemetry.fallback_used is True

    def test_brace_inside_value_does_not_end_span(self, config):
        text = 'x {"asset_name": "A", "specifications": "uses } and {"} y'
        extraction = extract_fallback(text, config)
        assert extraction.records[0].specification_text == "uses } and {"

    def test_incomplete_records_dropped(self, config):
        text = '{"asset_name": "A"} {"asset_name": "B", "specifications": "s"}'
        extraction = extract_fallback(text, config)
        assert [r.name for r in extraction.records] == ["B"]

    def test_merged_span_is_split(self, config):
        text = (
            '>> {"asset_name": "A", "specifications": "s1",'
            ' "asset_name": "B", "specifications": "s2"} <<'
        )
        extraction = extract_fallback(text, config)
        assert [r.name for r in extraction.records] == ["A", "B"]
        assert extraction.telemetry.objects_saved == 1
        assert extraction.telemetry.repair_attempted is True

    def test_latex_in_span_sanitized(self, config):
        text = r'{"asset_name": "Arm", "specifications": "turns 90^\circ"} trailing'
        extraction = extract_fallback(text, config)
        assert extraction.records[0].specification_text == "turns 90 degrees"


class TestArrayFragments:
    def test_nested_records_in_truncated_document(self, config):
        extraction = extract_fallback(NESTED_TRUNCATED, config)
        assert extraction.strategy == "array_fragments"
        assert [r.name for r in extraction.records] == ["A", "B"]
        assert extraction.telemetry.fallback_used is True

    def test_no_array_key(self, config):
        text = '{"other": [{"asset_name": "A", "dims": {"w": 1}}'
        assert extract_fallback(text, config).records == []


class TestNothingFound:
    @pytest.mark.parametrize(
        "text", [None, "", "Sorry, I cannot help with that brief.", "{}", "}{"]
    )
    def test_empty_extraction(self, config, text):
        extraction = extract_fallback(text, config)
        assert extraction.records == []
        assert extraction.strategy is None
        assert extraction.telemetry.fallback_used is False
