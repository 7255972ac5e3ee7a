"""Rules engine that decides whether leads may be assigned to campaigns."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .merge import merge_assignment_results, unique_in_order
from .models import (
    CampaignAssignmentResult,
    CampaignProfile,
    CompatibilitySummary,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    LeadProfile,
    ValidationRule,
)
from .rules import DEFAULT_RULES
from .scoring import estimate_bulk_success_rate, estimate_success_rate
from .templates import get_campaign_templates

LOGGER = logging.getLogger(__name__)

TOP_ISSUES_LIMIT = 3


class CampaignRulesEngine:
    """Runs a fixed set of validation rules for lead/campaign pairs.

    The engine holds no mutable state: every call is a pure function of its
    arguments, so one instance can be shared between threads.
    """

    def __init__(self, rules: Optional[Iterable[ValidationRule]] = None) -> None:
        self._rules = tuple(DEFAULT_RULES if rules is None else rules)

    @property
    def rules(self) -> List[ValidationRule]:
        return list(self._rules)

    def validate_lead_for_campaign(
        self, lead: LeadProfile, campaign: CampaignProfile
    ) -> CampaignAssignmentResult:
        """Evaluate every rule for one lead and aggregate the outcomes."""

        if lead is None or campaign is None:
            raise TypeError("validate_lead_for_campaign requires both a lead and a campaign")

        blocked_reasons: List[str] = []
        warnings: List[str] = []
        suggestions: List[str] = []

        for rule in self._rules:
            outcome = rule(lead, campaign)
            if outcome.severity == SEVERITY_ERROR and not outcome.is_valid:
                blocked_reasons.append(outcome.reason or "Validation failed")
            elif outcome.severity == SEVERITY_WARNING and outcome.reason:
                warnings.append(outcome.reason)
            if outcome.suggestion:
                suggestions.append(outcome.suggestion)

        can_assign = not blocked_reasons
        if not can_assign:
            LOGGER.debug(
                "Lead %s blocked for campaign %s: %s", lead.id, campaign.id, "; ".join(blocked_reasons)
            )

        return CampaignAssignmentResult(
            can_assign=can_assign,
            blocked_reasons=unique_in_order(blocked_reasons),
            warnings=unique_in_order(warnings),
            suggestions=unique_in_order(suggestions),
            valid_leads_count=1 if can_assign else 0,
            total_leads_count=1,
            estimated_success_rate=estimate_success_rate(lead, campaign),
            pass_rate=100 if can_assign else 0,
        )

    def validate_leads_for_campaign(
        self, leads: Sequence[LeadProfile], campaign: CampaignProfile
    ) -> CampaignAssignmentResult:
        """Validate a batch of leads against one campaign.

        ``current_leads_today`` is not advanced between leads, so every lead
        is checked against the counter as passed in.
        """

        results = [self.validate_lead_for_campaign(lead, campaign) for lead in leads]
        merged = merge_assignment_results(
            results, estimated_success_rate=estimate_bulk_success_rate(leads, campaign)
        )
        LOGGER.debug(
            "Campaign %s accepts %s of %s leads", campaign.id, merged.valid_leads_count, merged.total_leads_count
        )
        return merged

    def get_campaign_compatibility(
        self, leads: Sequence[LeadProfile], campaigns: Iterable[CampaignProfile]
    ) -> List[CompatibilitySummary]:
        """Summarise how many of ``leads`` each campaign would accept."""

        summaries: List[CompatibilitySummary] = []
        for campaign in campaigns:
            validation = self.validate_leads_for_campaign(leads, campaign)
            total = validation.total_leads_count
            score = validation.valid_leads_count / total * 100 if total else 0.0
            summaries.append(
                CompatibilitySummary(
                    campaign=campaign,
                    compatible_leads=validation.valid_leads_count,
                    total_leads=total,
                    compatibility_score=score,
                    top_issues=_top_issues(validation.blocked_reasons),
                )
            )
        return summaries


def _top_issues(blocked_reasons: Iterable[str], limit: int = TOP_ISSUES_LIMIT) -> List[str]:
    categories = unique_in_order(reason.split(":", 1)[0] for reason in blocked_reasons)
    return categories[:limit]


_DEFAULT_ENGINE = CampaignRulesEngine()


def validate_lead_for_campaign(lead: LeadProfile, campaign: CampaignProfile) -> CampaignAssignmentResult:
    return _DEFAULT_ENGINE.validate_lead_for_campaign(lead, campaign)


def validate_leads_for_campaign(
    leads: Sequence[LeadProfile], campaign: CampaignProfile
) -> CampaignAssignmentResult:
    return _DEFAULT_ENGINE.validate_leads_for_campaign(leads, campaign)


def get_campaign_compatibility(
    leads: Sequence[LeadProfile], campaigns: Iterable[CampaignProfile]
) -> List[CompatibilitySummary]:
    return _DEFAULT_ENGINE.get_campaign_compatibility(leads, campaigns)


__all__ = [
    "CampaignRulesEngine",
    "validate_lead_for_campaign",
    "validate_leads_for_campaign",
    "get_campaign_compatibility",
    "get_campaign_templates",
]
