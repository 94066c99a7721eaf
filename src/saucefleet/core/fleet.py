"""Completion aggregation for a fleet of jobs."""

from __future__ import annotations

from dataclasses import dataclass, field

from saucefleet.core.platforms import PlatformSpec


@dataclass(frozen=True)
class JobOutcome:
    """Terminal outcome of one job."""

    platform: PlatformSpec
    failed: bool
    url: str | None = None


@dataclass(frozen=True)
class FleetResult:
    """
    Aggregated result of a fleet.

    Attributes:
        success: True only if no job ended failed.
        outcomes: Terminal outcome of each job in completion order.
    """

    success: bool
    outcomes: tuple[JobOutcome, ...] = ()

    @property
    def passed(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if not o.failed]

    @property
    def failed(self) -> list[JobOutcome]:
        return [o for o in self.outcomes if o.failed]


@dataclass
class FleetAggregator:
    """Counts completions until the whole fleet is done."""

    size: int
    outcomes: list[JobOutcome] = field(default_factory=list)
    success: bool = True

    @property
    def completed(self) -> int:
        return len(self.outcomes)

    @property
    def done(self) -> bool:
        return self.completed >= self.size

    def record(self, outcome: JobOutcome) -> FleetResult | None:
        """Record one completion; returns the fleet result once all are in."""
        self.outcomes.append(outcome)
        self.success = self.success and not outcome.failed
        if self.done:
            return self.result()
        return None

    def result(self) -> FleetResult:
        return FleetResult(success=self.success, outcomes=tuple(self.outcomes))

    def reset(self) -> None:
        self.outcomes.clear()
        self.success = True
