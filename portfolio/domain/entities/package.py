from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from portfolio.domain.errors import ValidationError

# price columns are PostgreSQL INTEGER
MAX_PRICE = 2_147_483_647


@dataclass(frozen=True)
class PackageEntity:
    name: str
    price_min: int  # IDR, whole units
    price_max: int
    features: tuple[str, ...] = ()
    sort_order: int = 0
    id: str | None = None
    portfolio_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Package name cannot be empty")
        low = _coerce_price(self.price_min, "price_min")
        high = _coerce_price(self.price_max, "price_max")
        if low > high:
            raise ValidationError(f"Package '{self.name}' has price_min {low} above price_max {high}")
        object.__setattr__(self, "price_min", low)
        object.__setattr__(self, "price_max", high)
        object.__setattr__(
            self, "features", tuple(f.strip() for f in (self.features or ()) if f and f.strip())
        )


def _coerce_price(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{field} must be a whole number")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value)
    else:
        # 500000.0 is accepted, 10.5 and inf are not
        try:
            parsed = float(value)
        except (ValueError, OverflowError) as exc:
            raise ValidationError(f"{field} must be a whole number, got {value!r}") from exc
        if not parsed.is_integer():
            raise ValidationError(f"{field} must be a whole number, got {value!r}")
        number = int(parsed)
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    if number > MAX_PRICE:
        raise ValidationError(f"{field} cannot be above {MAX_PRICE}, got {number}")
    return number
