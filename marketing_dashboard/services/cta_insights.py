"""
Qualitative insights over the CTA-positions facet.

Rules are evaluated in a fixed order and each contributes at most one insight:

1. Best performing position (the runner-up when untagged clicks lead)
2. Sticky CTA verdict, efficient above 5% conversion
3. Incomplete tracking when untagged clicks exceed half of all clicks
4. Navigation CTA underperforming below 3% conversion
5. Hero CTA clicks and conversion

An empty facet yields a single "no data" insight, and a facet that triggers none
of the rules yields a single "analysis in progress" insight.
"""

from typing import List, Optional, Sequence

from marketing_dashboard.models.enums import InsightSeverity
from marketing_dashboard.models.schemas import CtaInsight, CtaPosition
from marketing_dashboard.services.facets import UNTAGGED_POSITION
from marketing_dashboard.services.metrics import parse_percent


STICKY_EFFICIENT_CONVERSION: float = 5.0
NAV_UNDERPERFORMING_CONVERSION: float = 3.0
UNTAGGED_WARNING_SHARE: float = 50.0

NAV_NAMES = ("nav", "navbar")


def _find(positions: Sequence[CtaPosition], predicate) -> Optional[CtaPosition]:
    return next((p for p in positions if predicate(p)), None)


def _top_performer(positions: Sequence[CtaPosition]) -> Optional[CtaInsight]:
    ranked = sorted(positions, key=lambda p: p.clicks, reverse=True)
    top = ranked[0]
    if top.position != UNTAGGED_POSITION:
        return CtaInsight(
            severity=InsightSeverity.SUCCESS,
            title=f"{top.position} = {top.percentage} of clicks",
            description="Best performing position",
        )
    if len(ranked) > 1:
        runner_up = ranked[1]
        return CtaInsight(
            severity=InsightSeverity.SUCCESS,
            title=f"{runner_up.position} = {runner_up.percentage} of clicks",
            description="Best performing position (excluding untagged)",
        )
    return None


def _sticky_verdict(positions: Sequence[CtaPosition]) -> Optional[CtaInsight]:
    sticky = _find(positions, lambda p: "sticky" in p.position.lower())
    if sticky is None:
        return None
    if parse_percent(sticky.conversionRate) > STICKY_EFFICIENT_CONVERSION:
        return CtaInsight(
            severity=InsightSeverity.INFO,
            title="Sticky CTA is effective",
            description=f"{sticky.percentage} of clicks, {sticky.conversionRate} conversion",
        )
    return CtaInsight(
        severity=InsightSeverity.WARNING,
        title="Sticky CTA needs optimization",
        description=f"Only {sticky.conversionRate} conversion",
    )


def _tracking_warning(positions: Sequence[CtaPosition]) -> Optional[CtaInsight]:
    untagged = _find(positions, lambda p: p.position == UNTAGGED_POSITION)
    if untagged is None or parse_percent(untagged.percentage) <= UNTAGGED_WARNING_SHARE:
        return None
    return CtaInsight(
        severity=InsightSeverity.CRITICAL,
        title="Incomplete tracking",
        description=f"{untagged.percentage} of clicks unidentified - check CTA tagging",
    )


def _nav_verdict(positions: Sequence[CtaPosition]) -> Optional[CtaInsight]:
    nav = _find(positions, lambda p: p.position.lower() in NAV_NAMES)
    if nav is None or parse_percent(nav.conversionRate) >= NAV_UNDERPERFORMING_CONVERSION:
        return None
    return CtaInsight(
        severity=InsightSeverity.WARNING,
        title="Navigation underperforms",
        description=f"Only {nav.conversionRate} conversion",
    )


def _hero_summary(positions: Sequence[CtaPosition]) -> Optional[CtaInsight]:
    hero = _find(positions, lambda p: p.position.lower() == "hero")
    if hero is None:
        return None
    return CtaInsight(
        severity=InsightSeverity.INFO,
        title=f"Hero: {hero.clicks} clicks",
        description=f"{hero.conversionRate} conversion",
    )


RULES = (
    _top_performer,
    _sticky_verdict,
    _tracking_warning,
    _nav_verdict,
    _hero_summary,
)


def generate_cta_analysis(positions: Sequence[CtaPosition]) -> List[CtaInsight]:
    """
    Derive insight cards from the finalized CTA positions.

    Args:
        positions: CTA-positions facet, live or fallback.

    Returns:
        List[CtaInsight]: At least one insight, in rule order.

    Example:
        >>> insights = generate_cta_analysis([
        ...     CtaPosition(position="Hero", clicks=90, percentage="45%", conversionRate="8.2%"),
        ... ])
        >>> [i.title for i in insights]
        ['Hero = 45% of clicks', 'Hero: 90 clicks']
    """
    if not positions:
        return [
            CtaInsight(
                severity=InsightSeverity.WARNING,
                title="No data",
                description="No CTA clicks recorded",
            )
        ]

    analysis = [insight for insight in (rule(positions) for rule in RULES) if insight is not None]
    if analysis:
        return analysis

    return [
        CtaInsight(
            severity=InsightSeverity.WARNING,
            title="Analysis in progress",
            description="Not enough data collected yet",
        )
    ]
