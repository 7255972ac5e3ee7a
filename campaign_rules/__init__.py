"""Eligibility rules for assigning sales leads to outreach campaigns."""

from . import models  # noqa: F401
from .engine import (
    CampaignRulesEngine,
    get_campaign_compatibility,
    validate_lead_for_campaign,
    validate_leads_for_campaign,
)
from .models import (
    CampaignAssignmentResult,
    CampaignProfile,
    CompatibilitySummary,
    LeadProfile,
    RuleOutcome,
    ValidationRule,
)
from .rules import DEFAULT_RULES
from .scoring import estimate_success_rate
from .templates import CAMPAIGN_TEMPLATES, get_campaign_templates

__all__ = [
    "CAMPAIGN_TEMPLATES",
    "DEFAULT_RULES",
    "CampaignAssignmentResult",
    "CampaignProfile",
    "CampaignRulesEngine",
    "CompatibilitySummary",
    "LeadProfile",
    "RuleOutcome",
    "ValidationRule",
    "estimate_success_rate",
    "get_campaign_compatibility",
    "get_campaign_templates",
    "validate_lead_for_campaign",
    "validate_leads_for_campaign",
    "cache",
    "config",
    "ingestion",
    "service",
]
