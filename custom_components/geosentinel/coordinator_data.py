"""
CoordinatorData — immutable snapshot of the tracking state shared with entities.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import NearbyRisk, Position


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write snapshot produced by each background cycle.

    Always replace via dataclasses.replace() — never mutate in place.
    """

    # False when no travel mode is persisted (tracking stopped)
    tracking_active: bool = False

    mode: str | None = None

    # Last position used by a cycle
    position: Position | None = None

    # Risks within the alert radius at the last position, nearest first
    nearby_risks: tuple[NearbyRisk, ...] = ()

    cached_risk_count: int = 0

    # Epoch ms of the last successful risk fetch, None until one succeeds
    last_fetch_time_ms: int | None = None

    slowdown_detected: bool = False

    municipality: str | None = None

    session_start_ms: int | None = None

    @property
    def nearest_risk(self) -> NearbyRisk | None:
        return self.nearby_risks[0] if self.nearby_risks else None
