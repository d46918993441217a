"""Step counts reported by the client device."""

from dataclasses import dataclass, field
from datetime import date

from calorie_tracker.services.diary import StepCounter


@dataclass
class ReportedStepCounter(StepCounter):
    """Keeps the latest step count each device reported for a day.

    Phones push their pedometer reading; days without a report count as zero.
    """

    _steps: dict[tuple[str, date], int] = field(default_factory=dict)

    def report(self, uid: str, day: date, steps: int) -> None:
        """Store the step count for a user and day."""
        if steps < 0:
            raise ValueError("Step count cannot be negative")
        self._steps[(uid, day)] = steps

    def get_steps(self, uid: str, day: date) -> int:
        """Return the reported steps, or zero when nothing was reported."""
        return self._steps.get((uid, day), 0)
