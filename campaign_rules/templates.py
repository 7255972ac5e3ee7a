"""Built-in campaign definitions used as starting points for new campaigns."""
from __future__ import annotations

from typing import List, Tuple

from .models import CampaignProfile

CAMPAIGN_TEMPLATES: Tuple[CampaignProfile, ...] = (
    CampaignProfile(
        id="connection_request_general",
        name="General Connection Requests",
        type="connection_request",
        target_audience="general",
        max_connection_degree="3rd",
        allowed_search_sources=["basic_search", "sales_navigator", "post_engagement"],
        min_profile_completeness=50,
        max_leads_per_day=100,
        current_leads_today=0,
    ),
    CampaignProfile(
        id="sales_outreach_premium",
        name="Sales Outreach (Premium)",
        type="direct_message",
        target_audience="sales_professionals",
        connection_required=True,
        premium_required=True,
        max_connection_degree="2nd",
        allowed_search_sources=["sales_navigator", "recruiter_search"],
        min_profile_completeness=70,
        min_mutual_connections=3,
        max_leads_per_day=50,
        current_leads_today=0,
        excluded_titles=["intern", "student", "unemployed"],
    ),
    CampaignProfile(
        id="email_campaign",
        name="Email Marketing Campaign",
        type="email",
        target_audience="general",
        email_required=True,
        allowed_search_sources=["csv_upload", "basic_search"],
        min_profile_completeness=30,
        max_leads_per_day=500,
        current_leads_today=0,
    ),
    CampaignProfile(
        id="recruiter_outreach",
        name="Recruiter Outreach",
        type="inmail",
        target_audience="recruiters",
        max_connection_degree="3rd",
        allowed_search_sources=["recruiter_search", "basic_search"],
        min_profile_completeness=80,
        min_mutual_connections=1,
        max_leads_per_day=25,
        current_leads_today=0,
        excluded_industries=["education", "non-profit"],
    ),
)


def get_campaign_templates() -> List[CampaignProfile]:
    """Return independent copies of the built-in campaign templates."""

    return [template.copy() for template in CAMPAIGN_TEMPLATES]


def get_campaign_template(template_id: str) -> CampaignProfile:
    for template in CAMPAIGN_TEMPLATES:
        if template.id == template_id:
            return template.copy()
    raise KeyError(f"Unknown campaign template '{template_id}'")


__all__ = ["CAMPAIGN_TEMPLATES", "get_campaign_templates", "get_campaign_template"]
