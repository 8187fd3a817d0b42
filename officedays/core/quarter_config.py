"""Quarter configuration — which months belong to which quarter.

Users may shift their quarters (e.g. a fiscal Q1 of Feb–Apr). The mapping
is owned by the caller through a QuarterConfigStore and passed explicitly
into the resolver and aggregator; there is no module-level state.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

QUARTERS: tuple[str, ...] = ("Q1", "Q2", "Q3", "Q4")


class QuarterConfig(BaseModel):
    """Month indices (0-11) assigned to each quarter.

    JSON example (the standard calendar year):
    {
        "Q1": [0, 1, 2],
        "Q2": [3, 4, 5],
        "Q3": [6, 7, 8],
        "Q4": [9, 10, 11]
    }

    Empty lists are accepted here and rejected when the quarter is
    resolved into a date range.
    """
    Q1: list[int]
    Q2: list[int]
    Q3: list[int]
    Q4: list[int]

    @field_validator("Q1", "Q2", "Q3", "Q4")
    @classmethod
    def check_month_indices(cls, v: list[int]) -> list[int]:
        bad = [m for m in v if not 0 <= m <= 11]
        if bad:
            raise ValueError(f"Month indices must be between 0 and 11, got {bad}")
        return v

    def months_for(self, quarter: str) -> list[int]:
        """Return the configured months for a quarter, [] for unknown labels."""
        if quarter not in QUARTERS:
            return []
        return list(getattr(self, quarter))

    def quarter_for_month(self, month: int) -> str | None:
        for quarter in QUARTERS:
            if month in getattr(self, quarter):
                return quarter
        return None

    def coverage_problems(self) -> list[str]:
        """Describe months that are unassigned or assigned more than once.

        Every month should belong to exactly one quarter; this is reported
        to the user rather than enforced.
        """
        problems = []
        for month in range(12):
            owners = [q for q in QUARTERS if month in getattr(self, q)]
            if not owners:
                problems.append(f"month {month + 1} is not in any quarter")
            elif len(owners) > 1:
                problems.append(f"month {month + 1} is in {', '.join(owners)}")
        return problems


def default_quarter_config() -> QuarterConfig:
    return QuarterConfig(Q1=[0, 1, 2], Q2=[3, 4, 5], Q3=[6, 7, 8], Q4=[9, 10, 11])


class QuarterConfigStore:
    """Holds the current quarter mapping for one user or session.

    Last write wins; reads always see the latest write.
    """

    def __init__(self, config: QuarterConfig | None = None) -> None:
        self._config = config if config is not None else default_quarter_config()

    def get(self) -> QuarterConfig:
        return self._config.model_copy(deep=True)

    def set(self, config: QuarterConfig) -> None:
        self._config = config.model_copy(deep=True)
        logger.info("Quarter configuration set: %s", self._config.model_dump())

    def reset(self) -> None:
        self._config = default_quarter_config()
        logger.info("Quarter configuration reset to calendar quarters")

    def update_quarter(self, quarter: str, months: list[int]) -> QuarterConfig:
        """Replace the months of one quarter and return the new mapping."""
        if quarter not in QUARTERS:
            raise ValueError(f"Unknown quarter: {quarter!r}")
        data = self._config.model_dump()
        data[quarter] = sorted(set(months))
        self.set(QuarterConfig(**data))
        return self.get()
