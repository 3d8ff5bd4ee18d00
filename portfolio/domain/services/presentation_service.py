from __future__ import annotations

from typing import Any, Iterable

from portfolio.domain.entities.package import PackageEntity
from portfolio.domain.entities.skill import SKILL_CATEGORIES, SkillEntity
from portfolio.domain.entities.snapshot import PortfolioSnapshot
from portfolio.domain.services.contact_service import ContactService


class PresentationService:
    """Read models for the public landing page."""

    @staticmethod
    def format_price(amount: int) -> str:
        # id-ID currency: no-break space after Rp, thousands grouped with dots
        return "Rp\u00a0" + f"{amount:,}".replace(",", ".")

    @staticmethod
    def price_label(package: PackageEntity) -> str:
        low = PresentationService.format_price(package.price_min)
        high = PresentationService.format_price(package.price_max)
        # the range is shown even when both ends match
        return f"Mulai dari {low} s/d {high}"

    @staticmethod
    def group_skills(skills: Iterable[SkillEntity]) -> dict[str, list[SkillEntity]]:
        groups: dict[str, list[SkillEntity]] = {category: [] for category in SKILL_CATEGORIES}
        for position, skill in enumerate(skills):
            groups[skill.resolved_category(position)].append(skill)
        return groups

    @staticmethod
    def pricing_section(
        packages: Iterable[PackageEntity], whatsapp: str | None
    ) -> list[dict[str, Any]] | None:
        """Cards for the services section, or ``None`` when there is nothing to show."""
        packages = list(packages)
        if not packages:
            return None
        has_number = bool(ContactService.normalize_number(whatsapp))
        cards = []
        for pkg in packages:
            order_url = None
            if has_number:
                order_url = ContactService.build_whatsapp_link(
                    whatsapp, ContactService.compose_order_message(pkg.name)
                )
            cards.append(
                {
                    "id": pkg.id,
                    "name": pkg.name,
                    "price_min": pkg.price_min,
                    "price_max": pkg.price_max,
                    "price_label": PresentationService.price_label(pkg),
                    "features": list(pkg.features),
                    "order_url": order_url,
                }
            )
        return cards

    @staticmethod
    def public_view(snapshot: PortfolioSnapshot) -> dict[str, Any]:
        profile = snapshot.profile
        groups = PresentationService.group_skills(snapshot.skills)
        contact_url = None
        if ContactService.normalize_number(profile.whatsapp):
            contact_url = ContactService.build_whatsapp_link(profile.whatsapp)
        return {
            "profile": profile,
            "skills": {category: items for category, items in groups.items()},
            "pricing": PresentationService.pricing_section(snapshot.packages, profile.whatsapp),
            "projects": list(snapshot.projects),
            "whatsapp_url": contact_url,
        }
