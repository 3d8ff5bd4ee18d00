from __future__ import annotations

from dataclasses import dataclass

from portfolio.domain.errors import ValidationError


@dataclass(frozen=True)
class ProjectEntity:
    title: str
    description: str | None = None
    image: str | None = None
    category: str | None = None  # free label, e.g. "Web Development"
    technologies: tuple[str, ...] = ()
    live_url: str | None = None
    github_url: str | None = None
    sort_order: int = 0
    id: str | None = None
    portfolio_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("Project title cannot be empty")
        object.__setattr__(
            self, "technologies", tuple(t.strip() for t in (self.technologies or ()) if t and t.strip())
        )
        # empty links are stored as NULL
        object.__setattr__(self, "live_url", self.live_url or None)
        object.__setattr__(self, "github_url", self.github_url or None)
