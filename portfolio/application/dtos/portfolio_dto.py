from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.profile import ProfileEntity, ProfilePatch
from portfolio.domain.entities.project import ProjectEntity
from portfolio.domain.entities.skill import SkillEntity
from portfolio.domain.entities.snapshot import CollectionKind, PortfolioSnapshot
from portfolio.domain.errors import ValidationError


def _id_str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None


class ProfileOut(BaseModel):
    """Profile as stored, or the built-in default when no row exists yet."""
    id: Optional[str] = Field(None, description="Profile row id, null for the built-in default")
    name: str = Field(..., description="Display name", example="Rafi Pratama")
    tagline: str = Field(..., description="Short headline", example="Web Developer & Cyber Security Enthusiast")
    age: int = Field(..., description="Age in years", example=13)
    grade: str = Field(..., description="School grade", example="Kelas 8 SMP")
    bio: str = Field(..., description="About-me paragraph")
    profile_image: Optional[str] = Field(None, description="Profile photo URL or data URL")
    logo_image: Optional[str] = Field(None, description="Logo URL or data URL")
    whatsapp: Optional[str] = Field(None, description="WhatsApp number, any format", example="+62 812-3456-7890")
    email: Optional[str] = Field(None, description="Contact email", example="rafi@example.com")
    github: Optional[str] = Field(None, description="GitHub profile URL")
    instagram: Optional[str] = Field(None, description="Instagram profile URL")
    location: Optional[str] = Field(None, description="Free-form location", example="Indonesia")

    @classmethod
    def from_entity(cls, profile: ProfileEntity) -> "ProfileOut":
        return cls(**{name: getattr(profile, name) for name in cls.model_fields})


class ProfileIn(BaseModel):
    """Full profile as submitted with a whole-draft save."""
    name: str = Field(..., description="Display name", example="Rafi Pratama")
    tagline: str = Field(..., description="Short headline")
    age: int = Field(..., description="Age in years", example=13, ge=0)
    grade: str = Field(..., description="School grade", example="Kelas 8 SMP")
    bio: str = Field(..., description="About-me paragraph")
    profile_image: Optional[str] = Field(None, description="Profile photo URL or data URL")
    logo_image: Optional[str] = Field(None, description="Logo URL or data URL")
    whatsapp: Optional[str] = Field(None, description="WhatsApp number, any format")
    email: Optional[str] = Field(None, description="Contact email")
    github: Optional[str] = Field(None, description="GitHub profile URL")
    instagram: Optional[str] = Field(None, description="Instagram profile URL")
    location: Optional[str] = Field(None, description="Free-form location")

    def to_patch(self) -> ProfilePatch:
        return ProfilePatch.from_mapping(self.model_dump())


class ProfilePatchIn(BaseModel):
    """Partial profile update. Fields left out of the body are not touched."""
    name: Optional[str] = Field(None, description="Display name")
    tagline: Optional[str] = Field(None, description="Short headline")
    age: Optional[int] = Field(None, description="Age in years", ge=0)
    grade: Optional[str] = Field(None, description="School grade")
    bio: Optional[str] = Field(None, description="About-me paragraph")
    profile_image: Optional[str] = Field(None, description="Profile photo URL or data URL")
    logo_image: Optional[str] = Field(None, description="Logo URL or data URL")
    whatsapp: Optional[str] = Field(None, description="WhatsApp number, any format")
    email: Optional[str] = Field(None, description="Contact email")
    github: Optional[str] = Field(None, description="GitHub profile URL")
    instagram: Optional[str] = Field(None, description="Instagram profile URL")
    location: Optional[str] = Field(None, description="Free-form location")

    def to_patch(self) -> ProfilePatch:
        return ProfilePatch.from_mapping(self.model_dump(exclude_unset=True))


class SkillIn(BaseModel):
    id: Optional[UUID] = Field(None, description="Existing skill id; omit to create")
    name: str = Field(..., description="Skill name", example="React")
    percentage: float = Field(..., description="Proficiency, clamped to 0..100", example=85)
    category: Optional[str] = Field(None, description="webdev or security", example="webdev")

    def to_entity(self) -> SkillEntity:
        return SkillEntity(name=self.name, percentage=self.percentage, category=self.category, id=_id_str(self.id))


class SkillOut(BaseModel):
    id: Optional[str] = Field(None, description="Skill id")
    name: str = Field(..., description="Skill name", example="React")
    percentage: int = Field(..., description="Proficiency 0..100", example=85, ge=0, le=100)
    category: Optional[str] = Field(None, description="Stored category, null for legacy rows")
    sort_order: int = Field(0, description="Position within the collection")

    @classmethod
    def from_entity(cls, skill: SkillEntity) -> "SkillOut":
        return cls(
            id=skill.id,
            name=skill.name,
            percentage=skill.percentage,
            category=skill.category,
            sort_order=skill.sort_order,
        )


class PackageIn(BaseModel):
    id: Optional[UUID] = Field(None, description="Existing package id; omit to create")
    name: str = Field(..., description="Package name", example="Landing Page")
    price_min: int = Field(..., description="Lowest price in IDR", example=500000)
    price_max: int = Field(..., description="Highest price in IDR", example=1500000)
    features: list[str] = Field(default_factory=list, description="Bullet points shown on the card")

    def to_entity(self) -> PackageEntity:
        return PackageEntity(
            name=self.name,
            price_min=self.price_min,
            price_max=self.price_max,
            features=tuple(self.features),
            id=_id_str(self.id),
        )


class PackageOut(BaseModel):
    id: Optional[str] = Field(None, description="Package id")
    name: str = Field(..., description="Package name", example="Landing Page")
    price_min: int = Field(..., description="Lowest price in IDR", example=500000)
    price_max: int = Field(..., description="Highest price in IDR", example=1500000)
    features: list[str] = Field(default_factory=list, description="Bullet points shown on the card")
    sort_order: int = Field(0, description="Position within the collection")

    @classmethod
    def from_entity(cls, package: PackageEntity) -> "PackageOut":
        return cls(
            id=package.id,
            name=package.name,
            price_min=package.price_min,
            price_max=package.price_max,
            features=list(package.features),
            sort_order=package.sort_order,
        )


class ProjectIn(BaseModel):
    id: Optional[UUID] = Field(None, description="Existing project id; omit to create")
    title: str = Field(..., description="Project title", example="Sekolah Website")
    description: Optional[str] = Field(None, description="Short description")
    image: Optional[str] = Field(None, description="Screenshot URL or data URL")
    category: Optional[str] = Field(None, description="Free label", example="Web Development")
    technologies: list[str] = Field(default_factory=list, description="Tech stack tags", example=["React", "Supabase"])
    live_url: Optional[str] = Field(None, description="Deployed site URL")
    github_url: Optional[str] = Field(None, description="Repository URL")

    def to_entity(self) -> ProjectEntity:
        return ProjectEntity(
            title=self.title,
            description=self.description,
            image=self.image,
            category=self.category,
            technologies=tuple(self.technologies),
            live_url=self.live_url,
            github_url=self.github_url,
            id=_id_str(self.id),
        )


class ProjectOut(BaseModel):
    id: Optional[str] = Field(None, description="Project id")
    title: str = Field(..., description="Project title")
    description: Optional[str] = Field(None, description="Short description")
    image: Optional[str] = Field(None, description="Screenshot URL or data URL")
    category: Optional[str] = Field(None, description="Free label")
    technologies: list[str] = Field(default_factory=list, description="Tech stack tags")
    live_url: Optional[str] = Field(None, description="Deployed site URL")
    github_url: Optional[str] = Field(None, description="Repository URL")
    sort_order: int = Field(0, description="Position within the collection")

    @classmethod
    def from_entity(cls, project: ProjectEntity) -> "ProjectOut":
        return cls(
            id=project.id,
            title=project.title,
            description=project.description,
            image=project.image,
            category=project.category,
            technologies=list(project.technologies),
            live_url=project.live_url,
            github_url=project.github_url,
            sort_order=project.sort_order,
        )


ITEM_MODELS: dict[CollectionKind, type[BaseModel]] = {
    CollectionKind.SKILLS: SkillIn,
    CollectionKind.PACKAGES: PackageIn,
    CollectionKind.PROJECTS: ProjectIn,
}


def parse_item(kind: CollectionKind, payload: Any) -> Any:
    """Validate one raw collection item into its entity."""
    try:
        model = ITEM_MODELS[kind].model_validate(payload)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'item'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid {kind.value} item: {problems}") from exc
    return model.to_entity()


def parse_item_changes(kind: CollectionKind, current: Any, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial edit of ``current``.

    The edit is merged over the current fields and checked like a new item.

    Returns:
        The edited fields with normalized values, ready for ``dataclasses.replace``.
    """
    editable = set(ITEM_MODELS[kind].model_fields) - {"id"}
    unknown = set(payload) - editable
    if unknown:
        raise ValidationError(f"Unknown {kind.value} fields: {', '.join(sorted(unknown))}")
    merged = {name: getattr(current, name) for name in editable}
    merged.update(payload)
    entity = parse_item(kind, {k: list(v) if isinstance(v, tuple) else v for k, v in merged.items()})
    return {name: getattr(entity, name) for name in payload}


class SnapshotResponse(BaseModel):
    """The whole portfolio in its stored form."""
    profile: ProfileOut = Field(..., description="Profile")
    skills: list[SkillOut] = Field(default_factory=list, description="Skills in display order")
    packages: list[PackageOut] = Field(default_factory=list, description="Service packages in display order")
    projects: list[ProjectOut] = Field(default_factory=list, description="Projects in display order")
    is_default: bool = Field(False, description="True when no profile has been saved yet")

    @classmethod
    def from_snapshot(cls, snapshot: PortfolioSnapshot) -> "SnapshotResponse":
        return cls(
            profile=ProfileOut.from_entity(snapshot.profile),
            skills=[SkillOut.from_entity(s) for s in snapshot.skills],
            packages=[PackageOut.from_entity(p) for p in snapshot.packages],
            projects=[ProjectOut.from_entity(p) for p in snapshot.projects],
            is_default=snapshot.is_default,
        )


class SaveAllRequest(BaseModel):
    """A complete editor draft."""
    profile: ProfileIn = Field(..., description="Full profile")
    skills: list[SkillIn] = Field(default_factory=list, description="Skills in the order to display")
    packages: list[PackageIn] = Field(default_factory=list, description="Packages in the order to display")
    projects: list[ProjectIn] = Field(default_factory=list, description="Projects in the order to display")


class PricingCard(BaseModel):
    id: Optional[str] = Field(None, description="Package id")
    name: str = Field(..., description="Package name", example="Landing Page")
    price_min: int = Field(..., description="Lowest price in IDR")
    price_max: int = Field(..., description="Highest price in IDR")
    price_label: str = Field(..., description="Formatted price range", example="Mulai dari Rp\u00a0500.000 s/d Rp\u00a01.500.000")
    features: list[str] = Field(default_factory=list, description="Bullet points")
    order_url: Optional[str] = Field(None, description="WhatsApp link that orders this package")


class SkillGroups(BaseModel):
    webdev: list[SkillOut] = Field(default_factory=list, description="Web development skills")
    security: list[SkillOut] = Field(default_factory=list, description="Cyber security skills")


class PublicPortfolioResponse(BaseModel):
    """Read model for the public landing page."""
    profile: ProfileOut = Field(..., description="Profile")
    skills: SkillGroups = Field(..., description="Skills grouped by category")
    pricing: Optional[list[PricingCard]] = Field(
        None, description="Service packages, null when none are configured so the section is hidden"
    )
    projects: list[ProjectOut] = Field(default_factory=list, description="Projects in display order")
    whatsapp_url: Optional[str] = Field(None, description="Plain WhatsApp chat link")

    @classmethod
    def from_view(cls, view: dict[str, Any]) -> "PublicPortfolioResponse":
        pricing = view["pricing"]
        return cls(
            profile=ProfileOut.from_entity(view["profile"]),
            skills=SkillGroups(
                **{category: [SkillOut.from_entity(s) for s in items] for category, items in view["skills"].items()}
            ),
            pricing=[PricingCard(**card) for card in pricing] if pricing is not None else None,
            projects=[ProjectOut.from_entity(p) for p in view["projects"]],
            whatsapp_url=view["whatsapp_url"],
        )


class DraftResponse(BaseModel):
    """The admin's unsaved working copy, held on the server between requests."""
    profile: ProfileOut = Field(..., description="Draft profile")
    skills: list[SkillOut] = Field(default_factory=list, description="Draft skills in display order")
    packages: list[PackageOut] = Field(default_factory=list, description="Draft packages in display order")
    projects: list[ProjectOut] = Field(default_factory=list, description="Draft projects in display order")
    saving: bool = Field(False, description="A save of this draft is in flight")
    last_error: Optional[str] = Field(None, description="Why the last save or refresh failed, if it did")

    @classmethod
    def from_draft(cls, draft: Any, saving: bool = False, last_error: Optional[Exception] = None) -> "DraftResponse":
        return cls(
            profile=ProfileOut.from_entity(draft.profile),
            skills=[SkillOut.from_entity(s) for s in draft.skills],
            packages=[PackageOut.from_entity(p) for p in draft.packages],
            projects=[ProjectOut.from_entity(p) for p in draft.projects],
            saving=saving,
            last_error=str(last_error) if last_error else None,
        )


class MoveItemRequest(BaseModel):
    to: int = Field(..., description="New position of the item", example=0, ge=0)
