"""Tests for FilterStatsTracker."""

import json
from datetime import datetime
from unittest.mock import Mock

import pytest

from jokestream.stats import FilterStats, FilterStatsTracker


class TestFilterStats:
    """Tests for the FilterStats dataclass."""

    def test_defaults(self):
        """New stats start at zero."""
        stats = FilterStats()
        assert stats.total_checked == 0
        assert stats.total_blocked == 0
        assert stats.blocked_by_category == {}
        assert isinstance(stats.last_checked, datetime)

    def test_dict_round_trip(self):
        """to_dict output is accepted by from_dict."""
        stats = FilterStats(
            total_checked=3,
            total_blocked=1,
            blocked_by_category={"violence": 1},
            last_checked=datetime(2025, 1, 2, 3, 4, 5),
        )
        data = stats.to_dict()
        assert data["last_checked"] == "2025-01-02T03:04:05"
        assert FilterStats.from_dict(data) == stats


class TestFilterStatsTrackerUpdate:
    """Tests for update() merge semantics."""

    def test_get_is_none_before_first_update(self):
        """No snapshot exists until the first update."""
        assert FilterStatsTracker().get() is None

    def test_first_update_fills_defaults(self):
        """Missing fields default to zero / empty / now."""
        tracker = FilterStatsTracker()
        before = datetime.now()
        stats = tracker.update(total_checked=1)
        assert stats.total_checked == 1
        assert stats.total_blocked == 0
        assert stats.blocked_by_category == {}
        assert stats.last_checked >= before

    def test_update_preserves_omitted_fields(self):
        """Fields not given keep their current value."""
        tracker = FilterStatsTracker()
        tracker.update(total_checked=5, total_blocked=2, blocked_by_category={"hate": 2})
        stats = tracker.update(total_checked=6)
        assert stats.total_checked == 6
        assert stats.total_blocked == 2
        assert stats.blocked_by_category == {"hate": 2}

    def test_blocked_by_category_is_overwritten_not_summed(self):
        """A new category map replaces the old one wholesale."""
        tracker = FilterStatsTracker()
        tracker.update(total_checked=2, total_blocked=2, blocked_by_category={"hate": 2})
        stats = tracker.update(blocked_by_category={"violence": 1})
        assert stats.blocked_by_category == {"violence": 1}

    def test_blocked_cannot_exceed_checked(self):
        """An update breaking total_blocked <= total_checked is rejected."""
        tracker = FilterStatsTracker()
        tracker.update(total_checked=1, total_blocked=1)
        with pytest.raises(ValueError, match="cannot exceed"):
            tracker.update(total_blocked=2)
        assert tracker.get().total_blocked == 1

    def test_negative_counters_rejected(self):
        """Negative counts are rejected."""
        tracker = FilterStatsTracker()
        with pytest.raises(ValueError):
            tracker.update(total_checked=-1)
        with pytest.raises(ValueError):
            tracker.update(total_checked=1, blocked_by_category={"hate": -1})
        assert tracker.get() is None

    def test_invariant_holds_over_sequence(self):
        """After any accepted sequence, blocked <= checked."""
        tracker = FilterStatsTracker()
        deltas = [
            {"total_checked": 1},
            {"total_checked": 2, "total_blocked": 1},
            {"total_blocked": 3},
            {"total_checked": 4, "total_blocked": 4},
            {"total_checked": 3},
        ]
        for delta in deltas:
            try:
                tracker.update(**delta)
            except ValueError:
                pass
            current = tracker.get()
            assert current.total_blocked <= current.total_checked

    def test_get_returns_copy(self):
        """Mutating a snapshot doesn't change the tracker."""
        tracker = FilterStatsTracker()
        tracker.update(total_checked=1, total_blocked=1, blocked_by_category={"hate": 1})
        snapshot = tracker.get()
        snapshot.blocked_by_category["hate"] = 99
        snapshot.total_checked = 99
        assert tracker.get().blocked_by_category == {"hate": 1}
        assert tracker.get().total_checked == 1

    def test_update_copies_category_map(self):
        """The caller's dict isn't stored by reference."""
        tracker = FilterStatsTracker()
        categories = {"hate": 1}
        tracker.update(total_checked=1, total_blocked=1, blocked_by_category=categories)
        categories["hate"] = 50
        assert tracker.get().blocked_by_category == {"hate": 1}


class TestFilterStatsTrackerPersistence:
    """Tests for JSON persistence."""

    def test_update_saves_state(self, tmp_path):
        """Every update is written to the state file."""
        state = tmp_path / "stats" / "stats.json"
        tracker = FilterStatsTracker(state_path=state)
        tracker.update(total_checked=2, total_blocked=1, blocked_by_category={"shit": 1})

        data = json.loads(state.read_text())
        assert data["total_checked"] == 2
        assert data["total_blocked"] == 1
        assert data["blocked_by_category"] == {"shit": 1}
        assert state.read_text().endswith("\n")

    def test_load_restores_state(self, tmp_path):
        """A new tracker picks up where the last one stopped."""
        state = tmp_path / "stats.json"
        FilterStatsTracker(state_path=state).update(total_checked=7, total_blocked=3)

        tracker = FilterStatsTracker(state_path=state)
        tracker.load()
        assert tracker.get().total_checked == 7
        assert tracker.get().total_blocked == 3

    def test_load_missing_file(self, tmp_path):
        """Loading a missing file leaves the tracker empty."""
        tracker = FilterStatsTracker(state_path=tmp_path / "missing.json")
        tracker.load()
        assert tracker.get() is None

    def test_load_invalid_json(self, tmp_path, caplog):
        """Invalid state is logged and ignored."""
        state = tmp_path / "stats.json"
        state.write_text("{not json")
        tracker = FilterStatsTracker(state_path=state)
        tracker.load()
        assert tracker.get() is None
        assert "Invalid filter stats state" in caplog.text

    def test_reset_removes_state(self, tmp_path):
        """reset() clears memory and disk."""
        state = tmp_path / "stats.json"
        tracker = FilterStatsTracker(state_path=state)
        tracker.update(total_checked=1)
        tracker.reset()
        assert tracker.get() is None
        assert not state.exists()

    def test_from_config(self, tmp_path):
        """from_config reads [stats] path and loads it."""
        state = tmp_path / "stats.json"
        FilterStatsTracker(state_path=state).update(total_checked=4)

        config = Mock()
        config.get = Mock(
            side_effect=lambda *keys, default=None: {("stats", "path"): str(state)}.get(
                keys, default
            )
        )
        tracker = FilterStatsTracker.from_config(config)
        assert tracker.state_path == state
        assert tracker.get().total_checked == 4

    def test_no_state_path_keeps_memory_only(self, tmp_path):
        """Without a path nothing is written."""
        tracker = FilterStatsTracker()
        tracker.update(total_checked=1)
        assert tracker.state_path is None
        assert list(tmp_path.iterdir()) == []
