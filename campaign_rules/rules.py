"""Catalogue of lead/campaign eligibility rules.

Each rule is a pure function of ``(lead, campaign)``. A rule whose governing
campaign field is unset returns :meth:`RuleOutcome.passed`, so campaigns can
configure any subset of the checks.
"""
from __future__ import annotations

from typing import Dict, Tuple

from .models import DEGREE_ORDER, CampaignProfile, LeadProfile, RuleOutcome, ValidationRule


def linkedin_profile_required(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if not lead.linkedin_url or "linkedin.com" not in lead.linkedin_url:
        return RuleOutcome.error(
            "No valid LinkedIn profile found",
            "Use LinkedIn search or CSV upload with profile URLs",
        )
    return RuleOutcome.passed()


def connection_degree_limit(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    max_degree = DEGREE_ORDER.get(campaign.max_connection_degree or "")
    lead_degree = DEGREE_ORDER.get(lead.connection_degree or "")
    # "unknown" has no ordinal and is treated like an unset degree.
    if max_degree is None or lead_degree is None:
        return RuleOutcome.passed()

    if lead_degree > max_degree:
        return RuleOutcome.error(
            f"Lead is {lead.connection_degree} connection, campaign requires "
            f"{campaign.max_connection_degree} or closer",
            "Connect with lead first or use different campaign type",
        )
    return RuleOutcome.passed()


def premium_account_required(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if campaign.premium_required and not lead.premium_account:
        return RuleOutcome.error(
            "Campaign requires LinkedIn Premium members only",
            "Filter search results for Premium members",
        )
    return RuleOutcome.passed()


def email_required(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if campaign.email_required and not lead.email:
        return RuleOutcome.error(
            "Email campaign requires email addresses",
            "Use email finder tools or different campaign type",
        )
    return RuleOutcome.passed()


def phone_required(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if campaign.phone_required and not lead.phone:
        return RuleOutcome.error(
            "Phone campaign requires phone numbers",
            "Use phone finder tools or different campaign type",
        )
    return RuleOutcome.passed()


def search_source_compatibility(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if lead.search_source not in campaign.allowed_search_sources:
        return RuleOutcome.error(
            f"Campaign doesn't support {lead.search_source} leads",
            "Use compatible search method or different campaign",
        )
    return RuleOutcome.passed()


def profile_completeness(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    minimum = campaign.min_profile_completeness
    if minimum is None or lead.profile_completeness is None:
        return RuleOutcome.passed()

    if lead.profile_completeness < minimum:
        return RuleOutcome.warning(
            f"Profile completeness {lead.profile_completeness}% below minimum {minimum}%",
            "Target leads with more complete profiles",
        )
    return RuleOutcome.passed()


def mutual_connections_minimum(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    minimum = campaign.min_mutual_connections
    if minimum is None or lead.mutual_connections is None:
        return RuleOutcome.passed()

    if lead.mutual_connections < minimum:
        return RuleOutcome.warning(
            f"Only {lead.mutual_connections} mutual connections, minimum {minimum} required",
            "Target leads with more mutual connections",
        )
    return RuleOutcome.passed()


def industry_restrictions(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    # Exact match: industries are expected to come from a normalised vocabulary.
    if lead.industry and lead.industry in campaign.excluded_industries:
        return RuleOutcome.error(
            f'Industry "{lead.industry}" is excluded from this campaign',
            "Use different campaign or filter out excluded industries",
        )
    return RuleOutcome.passed()


def title_restrictions(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if not lead.title or not campaign.excluded_titles:
        return RuleOutcome.passed()

    title = lead.title.lower()
    if any(excluded.lower() in title for excluded in campaign.excluded_titles):
        return RuleOutcome.error(
            f'Title "{lead.title}" contains excluded keywords',
            "Filter out excluded job titles",
        )
    return RuleOutcome.passed()


def daily_limit(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    # The counter is read as given; bulk callers must account for leads they
    # assign within the same pass.
    if campaign.max_leads_per_day is None or campaign.current_leads_today is None:
        return RuleOutcome.passed()

    if campaign.current_leads_today >= campaign.max_leads_per_day:
        return RuleOutcome.error(
            f"Daily limit reached: {campaign.current_leads_today}/{campaign.max_leads_per_day} leads",
            "Wait until tomorrow or increase daily limit",
        )
    return RuleOutcome.passed()


def profile_privacy(lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
    if lead.profile_visibility == "private":
        return RuleOutcome.warning(
            "Private profile may have limited outreach success",
            "Consider focusing on public profiles",
            is_valid=True,
        )
    return RuleOutcome.passed()


DEFAULT_RULES: Tuple[ValidationRule, ...] = (
    ValidationRule(
        id="linkedin_profile_required",
        name="LinkedIn Profile Required",
        description="Lead must have a valid LinkedIn profile URL",
        priority="critical",
        validator=linkedin_profile_required,
    ),
    ValidationRule(
        id="connection_degree_limit",
        name="Connection Degree Limit",
        description="Lead must be within allowed connection degree for campaign",
        priority="critical",
        validator=connection_degree_limit,
    ),
    ValidationRule(
        id="premium_account_required",
        name="Premium Account Required",
        description="Some campaigns require leads to have LinkedIn Premium",
        priority="high",
        validator=premium_account_required,
    ),
    ValidationRule(
        id="email_required",
        name="Email Required",
        description="Email campaigns require valid email addresses",
        priority="critical",
        validator=email_required,
    ),
    ValidationRule(
        id="phone_required",
        name="Phone Required",
        description="Phone campaigns require valid phone numbers",
        priority="high",
        validator=phone_required,
    ),
    ValidationRule(
        id="search_source_compatibility",
        name="Search Source Compatibility",
        description="Campaign must support the lead search source",
        priority="critical",
        validator=search_source_compatibility,
    ),
    ValidationRule(
        id="profile_completeness",
        name="Profile Completeness",
        description="Lead profile must meet minimum completeness requirements",
        priority="medium",
        validator=profile_completeness,
    ),
    ValidationRule(
        id="mutual_connections_minimum",
        name="Mutual Connections Minimum",
        description="Lead must have minimum mutual connections for better response rates",
        priority="medium",
        validator=mutual_connections_minimum,
    ),
    ValidationRule(
        id="industry_restrictions",
        name="Industry Restrictions",
        description="Lead industry must not be in excluded list",
        priority="high",
        validator=industry_restrictions,
    ),
    ValidationRule(
        id="title_restrictions",
        name="Title Restrictions",
        description="Lead title must not be in excluded list",
        priority="high",
        validator=title_restrictions,
    ),
    ValidationRule(
        id="daily_limit",
        name="Daily Limit Check",
        description="Campaign daily lead limit must not be exceeded",
        priority="critical",
        validator=daily_limit,
    ),
    ValidationRule(
        id="profile_privacy",
        name="Profile Privacy Check",
        description="Private profiles may have lower success rates",
        priority="low",
        validator=profile_privacy,
    ),
)

_RULES_BY_ID: Dict[str, ValidationRule] = {rule.id: rule for rule in DEFAULT_RULES}


def get_rule(rule_id: str) -> ValidationRule:
    """Return the registered rule with ``rule_id`` or raise :class:`KeyError`."""

    try:
        return _RULES_BY_ID[rule_id]
    except KeyError:
        raise KeyError(f"Unknown rule '{rule_id}'. Known rules: {sorted(_RULES_BY_ID)}") from None


__all__ = ["DEFAULT_RULES", "get_rule"]
