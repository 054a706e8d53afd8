"""Running content-filter statistics with optional JSON persistence."""

import json
import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class FilterStats:
    """Snapshot of filter counters."""

    total_checked: int = 0
    total_blocked: int = 0
    blocked_by_category: dict[str, int] = field(default_factory=dict)
    last_checked: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FilterStats":
        """Create FilterStats from persisted state."""
        last_checked = data.get("last_checked")
        return cls(
            total_checked=int(data.get("total_checked", 0)),
            total_blocked=int(data.get("total_blocked", 0)),
            blocked_by_category={k: int(v) for k, v in data.get("blocked_by_category", {}).items()},
            last_checked=datetime.fromisoformat(last_checked) if last_checked else datetime.now(),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_checked"] = self.last_checked.isoformat()
        return data


class FilterStatsTracker:
    """Merges partial updates into a FilterStats snapshot.

    update() is a merge, not a replace: fields left out keep their current
    value. blocked_by_category is replaced wholesale when given, so callers
    wanting cumulative per-category counts must merge before calling.

    Args:
        state_path: Optional JSON file the snapshot is saved to after every
            update and restored from by load().
    """

    def __init__(self, state_path: Path | str | None = None):
        self.state_path = Path(state_path).expanduser() if state_path else None
        self._stats: FilterStats | None = None

    @classmethod
    def from_config(cls, config: Any) -> "FilterStatsTracker":
        """Create a tracker from the [stats] config section and load saved state."""
        tracker = cls(state_path=config.get("stats", "path"))
        tracker.load()
        return tracker

    def get(self) -> FilterStats | None:
        """Return a copy of the current snapshot, or None before the first update."""
        if self._stats is None:
            return None
        return replace(self._stats, blocked_by_category=dict(self._stats.blocked_by_category))

    def update(
        self,
        *,
        total_checked: int | None = None,
        total_blocked: int | None = None,
        blocked_by_category: dict[str, int] | None = None,
        last_checked: datetime | None = None,
    ) -> FilterStats:
        """Merge the given fields into the snapshot.

        Returns:
            The new snapshot (a copy)

        Raises:
            ValueError: If the result would have a negative counter or more
                blocked than checked. The snapshot is left unchanged.
        """
        base = self._stats or FilterStats()
        merged = FilterStats(
            total_checked=base.total_checked if total_checked is None else total_checked,
            total_blocked=base.total_blocked if total_blocked is None else total_blocked,
            blocked_by_category=dict(
                base.blocked_by_category if blocked_by_category is None else blocked_by_category
            ),
            last_checked=base.last_checked if last_checked is None else last_checked,
        )

        if merged.total_checked < 0 or merged.total_blocked < 0:
            raise ValueError("Filter stats counters cannot be negative")
        if merged.total_blocked > merged.total_checked:
            raise ValueError(
                f"total_blocked ({merged.total_blocked}) cannot exceed "
                f"total_checked ({merged.total_checked})"
            )
        if any(count < 0 for count in merged.blocked_by_category.values()):
            raise ValueError("Category counts cannot be negative")

        self._stats = merged
        self._save()
        return self.get()  # type: ignore[return-value]

    def reset(self) -> None:
        """Clear the snapshot and remove any persisted state."""
        self._stats = None
        if self.state_path and self.state_path.exists():
            self.state_path.unlink()
        logger.info("Filter stats reset")

    def load(self) -> None:
        """Load the snapshot from state_path if it exists."""
        if self.state_path is None or not self.state_path.exists():
            return

        try:
            with open(self.state_path) as f:
                data = json.load(f)
            self._stats = FilterStats.from_dict(data)
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Invalid filter stats state, starting fresh: %s", e)
            self._stats = None

    def _save(self) -> None:
        if self.state_path is None or self._stats is None:
            return

        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, "w") as f:
            json.dump(self._stats.to_dict(), f, indent=2)
            f.write("\n")
