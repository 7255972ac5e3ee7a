from __future__ import annotations

import pytest

from campaign_rules.models import CampaignProfile, LeadProfile


def build_lead(**overrides) -> LeadProfile:
    values = dict(
        id="lead-1",
        name="Ada Lovelace",
        search_source="sales_navigator",
        title="Head of Engineering",
        company="Analytical Engines",
        linkedin_url="https://www.linkedin.com/in/ada-lovelace",
        connection_degree="1st",
    )
    values.update(overrides)
    return LeadProfile(**values)


def build_campaign(**overrides) -> CampaignProfile:
    values = dict(
        id="campaign-1",
        name="Founders Outreach",
        type="direct_message",
        allowed_search_sources=["sales_navigator", "basic_search"],
        max_leads_per_day=100,
        current_leads_today=0,
    )
    values.update(overrides)
    return CampaignProfile(**values)


@pytest.fixture()
def make_lead():
    return build_lead


@pytest.fixture()
def make_campaign():
    return build_campaign
