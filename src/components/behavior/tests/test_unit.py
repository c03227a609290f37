"""
Unit tests for Behavior component.
"""

from __future__ import annotations

import pytest

from src.components.behavior.component import (
    build_evidence_data,
    calculate_continuity_ratio,
    calculate_focus_ratio,
    calculate_interaction_ratio,
    check_interaction_timeout,
    compute_ratios,
    convert_stats_to_events,
    convert_to_stats,
    count_time_gaps,
    extract_duration,
    extract_timestamp,
    has_authentication_failure,
    has_completed_test,
    is_browsing_or_testing,
)

# --- Field Extraction ---


class TestFieldExtraction:
    """Malformed fields degrade to safe defaults."""

    def test_duration_numeric_string(self) -> None:
        assert extract_duration({"duration": "12.5"}) == 12.5

    def test_duration_missing_or_garbage(self) -> None:
        assert extract_duration({}) == 0.0
        assert extract_duration({"duration": "abc"}) == 0.0
        assert extract_duration({"duration": None}) == 0.0
        assert extract_duration({"duration": True}) == 0.0
        assert extract_duration({"duration": float("nan")}) == 0.0

    def test_negative_duration_is_zero(self) -> None:
        assert extract_duration({"duration": -10}) == 0.0
        assert extract_duration({"duration": "-3.5"}) == 0.0

    def test_timestamp_parsing(self) -> None:
        assert extract_timestamp({"timestamp": 100}) == 100
        assert extract_timestamp({"timestamp": "150"}) == 150
        assert extract_timestamp({"timestamp": ""}) is None
        assert extract_timestamp({"timestamp": "later"}) is None
        assert extract_timestamp({}) is None


# --- Ratios ---


class TestFocusRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_focus_ratio([]) == 0.0

    def test_zero_total_duration_is_zero(self) -> None:
        assert calculate_focus_ratio([{"action": "click"}]) == 0.0

    def test_unfocused_actions_excluded(self) -> None:
        events = [
            {"action": "play", "duration": 60},
            {"action": "window_blur", "duration": 20},
            {"action": "tab_switch", "duration": 10},
            {"action": "mouse_leave", "duration": 10},
        ]
        assert calculate_focus_ratio(events) == pytest.approx(0.6)

    def test_fully_focused(self) -> None:
        assert calculate_focus_ratio([{"action": "play", "duration": 30}]) == 1.0

    def test_negative_durations_ignored(self) -> None:
        events = [
            {"action": "click", "duration": -10},
            {"action": "window_blur", "duration": 20},
            {"action": "play", "duration": 20},
        ]
        assert calculate_focus_ratio(events) == pytest.approx(0.5)


class TestInteractionRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_interaction_ratio([]) == 0.0

    def test_counts_interaction_actions(self) -> None:
        events = [
            {"action": "click"},
            {"action": "scroll"},
            {"action": "play"},
            {"action": "pause"},
        ]
        assert calculate_interaction_ratio(events) == 0.5

    def test_missing_action_is_not_interaction(self) -> None:
        assert calculate_interaction_ratio([{}, {"action": 5}]) == 0.0


class TestContinuityRatio:
    def test_empty_is_zero(self) -> None:
        assert calculate_continuity_ratio([]) == 0.0

    def test_no_gaps_is_one(self) -> None:
        events = [{"action": "play", "timestamp": t} for t in (0, 60, 120, 180)]
        assert calculate_continuity_ratio(events) == 1.0

    def test_gaps_reduce_ratio(self) -> None:
        events = [{"action": "play", "timestamp": t} for t in (0, 200, 260, 500)]
        assert count_time_gaps(events) == 2
        assert calculate_continuity_ratio(events) == pytest.approx(0.5)

    def test_gap_exactly_at_threshold_not_counted(self) -> None:
        events = [{"timestamp": 0}, {"timestamp": 120}]
        assert count_time_gaps(events) == 0

    def test_untimestamped_events_skipped_for_gaps(self) -> None:
        events = [{"timestamp": 0}, {"action": "click"}, {"timestamp": 100}]
        assert count_time_gaps(events) == 0
        assert calculate_continuity_ratio(events) == 1.0

    def test_custom_threshold(self) -> None:
        events = [{"timestamp": 0}, {"timestamp": 50}]
        assert count_time_gaps(events, gap_threshold=30) == 1


class TestRatioBounds:
    """All ratios stay inside [0, 1]."""

    @pytest.mark.parametrize(
        "events",
        [
            [],
            [{"action": "click", "duration": -5, "timestamp": 10}],
            [{"action": "window_blur", "duration": 100}],
            [{"timestamp": t} for t in range(0, 5000, 500)],
            [{"action": "click", "duration": "x", "timestamp": "y"}] * 3,
            [{"action": "click", "duration": -10}, {"action": "window_blur", "duration": 20}],
            [{"action": "play", "duration": 50}, {"action": "tab_switch", "duration": -40}],
        ],
    )
    def test_ratios_in_unit_interval(self, events) -> None:
        ratios = compute_ratios(events)
        for value in (ratios.focus, ratios.interaction, ratios.continuity):
            assert 0.0 <= value <= 1.0


# --- Detectors ---


class TestDetectors:
    def test_browsing_or_testing(self) -> None:
        assert is_browsing_or_testing([{"action": "view_materials"}])
        assert is_browsing_or_testing([{"action": "play"}, {"action": "quiz_attempt"}])
        assert not is_browsing_or_testing([{"action": "play"}])

    def test_authentication_failure(self) -> None:
        assert has_authentication_failure([{"action": "auth_failed"}])
        assert not has_authentication_failure([{"action": "auth_ok"}])

    def test_completed_test(self) -> None:
        assert has_completed_test([{"action": "test_completed"}])
        assert not has_completed_test([])


class TestInteractionTimeout:
    def test_within_interval(self) -> None:
        events = [{"timestamp": 0}, {"timestamp": 300}, {"timestamp": 600}]
        assert check_interaction_timeout(events, 300).valid

    def test_exceeds_interval(self) -> None:
        events = [{"timestamp": 0}, {"timestamp": 301}]
        result = check_interaction_timeout(events, 300)
        assert not result.valid
        assert result.description == "Interaction interval exceeded 300 seconds"

    def test_walks_in_given_order(self) -> None:
        # Out-of-order timestamps give negative deltas, never a timeout
        events = [{"timestamp": 1000}, {"timestamp": 0}]
        assert check_interaction_timeout(events, 300).valid


# --- Evidence ---


class TestEvidence:
    def test_summary_fields(self) -> None:
        events = [
            {"action": "play", "timestamp": 100},
            {"action": "click", "timestamp": 50},
            {"action": "play", "timestamp": 400},
        ]
        snapshot = build_evidence_data(events, 180.0, captured_at=1234)

        assert snapshot.total_behaviors == 3
        assert snapshot.unique_actions == ("play", "click")
        assert snapshot.timestamp_range == (50, 400)
        assert snapshot.interaction_frequency == pytest.approx(1.0)
        assert snapshot.to_dict()["timestamp"] == 1234
        assert snapshot.to_dict()["type"] == "behavior_summary"

    def test_zero_duration_frequency(self) -> None:
        snapshot = build_evidence_data([{"action": "play"}], 0.0, captured_at=1)
        assert snapshot.interaction_frequency == 0.0
        assert snapshot.timestamp_range is None
        assert snapshot.to_dict()["timestamp_range"] is None


# --- Stats Conversion ---


class TestStatsConversion:
    def test_empty_events_store_none(self) -> None:
        assert convert_to_stats([]) is None

    def test_event_list_round_trips(self) -> None:
        events = [{"action": "click", "timestamp": 1}]
        assert convert_stats_to_events(convert_to_stats(events)) == events

    def test_legacy_mapping_expanded(self) -> None:
        events = convert_stats_to_events({"clicks": 3}, captured_at=99)
        assert events == [{"type": "stat", "key": "clicks", "value": 3, "timestamp": 99}]

    def test_non_mapping_items_dropped(self) -> None:
        assert convert_stats_to_events([{"action": "play"}, "junk", 3]) == [{"action": "play"}]

    def test_none_is_empty(self) -> None:
        assert convert_stats_to_events(None) == []
