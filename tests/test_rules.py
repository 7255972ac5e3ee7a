from __future__ import annotations

import pytest

from campaign_rules import rules
from campaign_rules.models import PRIORITIES, SEVERITIES, RuleOutcome
from campaign_rules.rules import DEFAULT_RULES, get_rule


def test_registry_contains_all_rules_in_order() -> None:
    assert [rule.id for rule in DEFAULT_RULES] == [
        "linkedin_profile_required",
        "connection_degree_limit",
        "premium_account_required",
        "email_required",
        "phone_required",
        "search_source_compatibility",
        "profile_completeness",
        "mutual_connections_minimum",
        "industry_restrictions",
        "title_restrictions",
        "daily_limit",
        "profile_privacy",
    ]
    assert {rule.priority for rule in DEFAULT_RULES} <= set(PRIORITIES)


def test_get_rule_unknown_id() -> None:
    assert get_rule("daily_limit").name == "Daily Limit Check"
    with pytest.raises(KeyError):
        get_rule("does_not_exist")


@pytest.mark.parametrize(
    "url",
    [None, "", "https://twitter.com/ada", "ada-lovelace"],
)
def test_linkedin_profile_required_rejects_missing_or_foreign_urls(make_lead, make_campaign, url) -> None:
    outcome = rules.linkedin_profile_required(make_lead(linkedin_url=url), make_campaign())

    assert not outcome.is_valid
    assert outcome.severity == "error"
    assert outcome.reason == "No valid LinkedIn profile found"


def test_linkedin_profile_required_accepts_linkedin_url(make_lead, make_campaign) -> None:
    outcome = rules.linkedin_profile_required(make_lead(), make_campaign())

    assert outcome.is_valid
    assert outcome.severity == "info"


def test_connection_degree_beyond_campaign_maximum(make_lead, make_campaign) -> None:
    outcome = rules.connection_degree_limit(
        make_lead(connection_degree="3rd"), make_campaign(max_connection_degree="1st")
    )

    assert not outcome.is_valid
    assert outcome.severity == "error"
    assert "3rd connection" in outcome.reason
    assert "1st" in outcome.reason


@pytest.mark.parametrize(
    "lead_degree, max_degree",
    [
        ("1st", "1st"),
        ("2nd", "3rd"),
        (None, "1st"),
        ("unknown", "1st"),
        ("out_of_network", None),
    ],
)
def test_connection_degree_passes_within_limit_or_when_unset(make_lead, make_campaign, lead_degree, max_degree) -> None:
    outcome = rules.connection_degree_limit(
        make_lead(connection_degree=lead_degree), make_campaign(max_connection_degree=max_degree)
    )

    assert outcome.is_valid


def test_out_of_network_exceeds_third_degree(make_lead, make_campaign) -> None:
    outcome = rules.connection_degree_limit(
        make_lead(connection_degree="out_of_network"), make_campaign(max_connection_degree="3rd")
    )

    assert not outcome.is_valid


def test_required_contact_fields(make_lead, make_campaign) -> None:
    campaign = make_campaign(premium_required=True, email_required=True, phone_required=True)
    lead = make_lead(premium_account=False, email=None, phone=None)

    assert rules.premium_account_required(lead, campaign).reason == "Campaign requires LinkedIn Premium members only"
    assert rules.email_required(lead, campaign).reason == "Email campaign requires email addresses"
    assert rules.phone_required(lead, campaign).reason == "Phone campaign requires phone numbers"

    complete = make_lead(premium_account=True, email="ada@example.com", phone="555-0100")
    assert rules.premium_account_required(complete, campaign).is_valid
    assert rules.email_required(complete, campaign).is_valid
    assert rules.phone_required(complete, campaign).is_valid


def test_search_source_must_be_allowed(make_lead, make_campaign) -> None:
    outcome = rules.search_source_compatibility(
        make_lead(search_source="post_engagement"), make_campaign(allowed_search_sources=["sales_navigator"])
    )

    assert not outcome.is_valid
    assert outcome.reason == "Campaign doesn't support post_engagement leads"


def test_profile_completeness_is_a_warning(make_lead, make_campaign) -> None:
    campaign = make_campaign(min_profile_completeness=70)

    below = rules.profile_completeness(make_lead(profile_completeness=69), campaign)
    at = rules.profile_completeness(make_lead(profile_completeness=70), campaign)
    zero = rules.profile_completeness(make_lead(profile_completeness=0), campaign)

    assert not below.is_valid
    assert below.severity == "warning"
    assert below.reason == "Profile completeness 69% below minimum 70%"
    assert at.is_valid
    assert not zero.is_valid


def test_mutual_connections_minimum_is_a_warning(make_lead, make_campaign) -> None:
    outcome = rules.mutual_connections_minimum(
        make_lead(mutual_connections=1), make_campaign(min_mutual_connections=3)
    )

    assert not outcome.is_valid
    assert outcome.severity == "warning"
    assert outcome.reason == "Only 1 mutual connections, minimum 3 required"
    assert rules.mutual_connections_minimum(make_lead(mutual_connections=None), make_campaign(min_mutual_connections=3)).is_valid


def test_industry_exclusion_is_exact_match(make_lead, make_campaign) -> None:
    campaign = make_campaign(excluded_industries=["education"])

    blocked = rules.industry_restrictions(make_lead(industry="education"), campaign)
    other_case = rules.industry_restrictions(make_lead(industry="Education"), campaign)
    partial = rules.industry_restrictions(make_lead(industry="higher education"), campaign)

    assert not blocked.is_valid
    assert blocked.reason == 'Industry "education" is excluded from this campaign'
    assert other_case.is_valid
    assert partial.is_valid


def test_title_exclusion_is_case_insensitive_substring(make_lead, make_campaign) -> None:
    campaign = make_campaign(excluded_titles=["intern"])

    outcome = rules.title_restrictions(make_lead(title="Marketing INTERN"), campaign)

    assert not outcome.is_valid
    assert outcome.reason == 'Title "Marketing INTERN" contains excluded keywords'
    assert rules.title_restrictions(make_lead(title=None), campaign).is_valid
    assert rules.title_restrictions(make_lead(title="CTO"), campaign).is_valid


def test_daily_limit(make_lead, make_campaign) -> None:
    full = rules.daily_limit(make_lead(), make_campaign(current_leads_today=100, max_leads_per_day=100))
    room = rules.daily_limit(make_lead(), make_campaign(current_leads_today=99, max_leads_per_day=100))
    unlimited = rules.daily_limit(make_lead(), make_campaign(current_leads_today=500, max_leads_per_day=None))

    assert not full.is_valid
    assert full.reason == "Daily limit reached: 100/100 leads"
    assert room.is_valid
    assert unlimited.is_valid


def test_profile_privacy_is_advisory_only(make_lead, make_campaign) -> None:
    outcome = rules.profile_privacy(make_lead(profile_visibility="private"), make_campaign())

    assert outcome.is_valid
    assert outcome.severity == "warning"
    assert outcome.reason == "Private profile may have limited outreach success"
    assert outcome.suggestion == "Consider focusing on public profiles"
    assert rules.profile_privacy(make_lead(profile_visibility="public"), make_campaign()).reason is None


def test_every_rule_reports_a_known_severity(make_lead, make_campaign) -> None:
    lead = make_lead(linkedin_url=None, profile_visibility="private", profile_completeness=10)
    campaign = make_campaign(min_profile_completeness=50)

    assert {rule(lead, campaign).severity for rule in DEFAULT_RULES} <= set(SEVERITIES)


def test_rule_outcome_rejects_unknown_severity() -> None:
    assert RuleOutcome.passed().severity == "info"
    assert RuleOutcome.error("nope").severity == "error"
    assert RuleOutcome.warning("hmm").severity == "warning"
    with pytest.raises(ValueError):
        RuleOutcome(is_valid=False, severity="fatal")
