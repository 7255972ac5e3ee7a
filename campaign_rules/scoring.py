"""Heuristic outreach success-rate estimate for a lead/campaign pair."""
from __future__ import annotations

import math
from typing import Sequence

from .models import CampaignProfile, LeadProfile

BASE_RATE = 15
MAX_RATE = 85

_DEGREE_POINTS = {"1st": 25, "2nd": 15, "3rd": 5}
_CAMPAIGN_TYPE_POINTS = {"connection_request": 5, "inmail": 10}


def estimate_success_rate(lead: LeadProfile, campaign: CampaignProfile) -> int:
    """Return a 0-85 estimate of the chance that outreach to ``lead`` succeeds.

    Points are summed from the base rate and clamped once at the end.
    """

    rate = BASE_RATE
    rate += _DEGREE_POINTS.get(lead.connection_degree or "", 0)

    mutual = lead.mutual_connections or 0
    if mutual >= 10:
        rate += 15
    elif mutual >= 5:
        rate += 10
    elif mutual >= 1:
        rate += 5

    completeness = lead.profile_completeness or 0
    if completeness >= 90:
        rate += 10
    elif completeness >= 70:
        rate += 5

    if lead.premium_account:
        rate += 10
    if lead.open_to_work:
        rate += 15
    if lead.profile_visibility == "private":
        rate -= 10

    if campaign.type == "email":
        rate += 20 if lead.email else 0
    else:
        rate += _CAMPAIGN_TYPE_POINTS.get(campaign.type, 0)

    return min(max(rate, 0), MAX_RATE)


def estimate_bulk_success_rate(leads: Sequence[LeadProfile], campaign: CampaignProfile) -> int:
    """Mean of the per-lead estimates, rounded half up; ``0`` for no leads."""

    return mean_rate([estimate_success_rate(lead, campaign) for lead in leads])


def mean_rate(rates: Sequence[int]) -> int:
    if not rates:
        return 0
    return round_half_up(sum(rates) / len(rates))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


__all__ = [
    "BASE_RATE",
    "MAX_RATE",
    "estimate_success_rate",
    "estimate_bulk_success_rate",
    "mean_rate",
    "round_half_up",
]
