from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from portfolio.domain.errors import ValidationError

SKILL_CATEGORIES = ("webdev", "security")
# legacy rows without a category: the first five are web development skills
WEBDEV_SLOTS = 5


@dataclass(frozen=True)
class SkillEntity:
    name: str
    percentage: int
    category: str | None = None
    sort_order: int = 0
    id: str | None = None
    portfolio_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Skill name cannot be empty")
        if self.category is not None and self.category not in SKILL_CATEGORIES:
            raise ValidationError(
                f"Skill category must be one of {', '.join(SKILL_CATEGORIES)}, got {self.category!r}"
            )
        object.__setattr__(self, "percentage", clamp_percentage(self.percentage))

    def resolved_category(self, position: int) -> str:
        """Stored category, or the positional one for rows that predate the column."""
        if self.category:
            return self.category
        return SKILL_CATEGORIES[0] if position < WEBDEV_SLOTS else SKILL_CATEGORIES[1]


def clamp_percentage(value: Any) -> int:
    """Clamp a proficiency value into 0..100. Non-numeric input is rejected."""
    if isinstance(value, bool):
        raise ValidationError("Skill percentage must be numeric")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"Skill percentage must be numeric, got {value!r}") from exc
    if math.isnan(number):
        raise ValidationError("Skill percentage must be numeric, got NaN")
    return int(round(min(100.0, max(0.0, number))))
