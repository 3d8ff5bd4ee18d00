from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from portfolio.domain.errors import ValidationError


class _Unset:
    """Marker for a patch field that was not supplied."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _coerce_age(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Age must be a whole number")
    if isinstance(value, int):
        age = value
    else:
        try:
            age = int(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValidationError(f"Age must be a whole number, got {value!r}") from exc
    if age < 0:
        raise ValidationError("Age cannot be negative")
    return age


@dataclass(frozen=True)
class ProfileEntity:
    name: str
    tagline: str
    age: int
    grade: str
    bio: str
    profile_image: str | None = None  # storage URL or data URL
    logo_image: str | None = None
    whatsapp: str | None = None  # free-form, normalized to digits when linking
    email: str | None = None
    github: str | None = None
    instagram: str | None = None
    location: str | None = None
    id: str | None = None  # None until the row exists in the store

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Profile name cannot be empty")
        object.__setattr__(self, "age", _coerce_age(self.age))


REQUIRED_FIELDS = ("name", "tagline", "age", "grade", "bio")
CONTENT_FIELDS = tuple(f.name for f in fields(ProfileEntity) if f.name != "id")

DEFAULT_PROFILE = ProfileEntity(
    name="Portfolio Owner",
    tagline="Web Developer & Cyber Security Enthusiast",
    age=13,
    grade="Kelas 8 SMP",
    bio="Pelajar yang suka membangun website dan belajar keamanan siber.",
    location="Indonesia",
)


@dataclass(frozen=True)
class ProfilePatch:
    """Partial profile update.

    Every field defaults to ``UNSET``. Merge rule: ``UNSET`` keeps the
    existing value, anything else (``None`` included, for nullable fields)
    replaces it.
    """

    name: Any = UNSET
    tagline: Any = UNSET
    age: Any = UNSET
    grade: Any = UNSET
    bio: Any = UNSET
    profile_image: Any = UNSET
    logo_image: Any = UNSET
    whatsapp: Any = UNSET
    email: Any = UNSET
    github: Any = UNSET
    instagram: Any = UNSET
    location: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ProfilePatch:
        unknown = set(data) - set(CONTENT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        return cls(**dict(data))

    @classmethod
    def from_profile(cls, profile: ProfileEntity) -> ProfilePatch:
        """A patch that sets every content field to the profile's value."""
        return cls(**{name: getattr(profile, name) for name in CONTENT_FIELDS})

    def changes(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name in CONTENT_FIELDS:
            value = getattr(self, name)
            if value is UNSET:
                continue
            if value is None and name in REQUIRED_FIELDS:
                raise ValidationError(f"Profile field '{name}' cannot be null")
            out[name] = value
        return out

    def apply(self, profile: ProfileEntity) -> ProfileEntity:
        return replace(profile, **self.changes())
