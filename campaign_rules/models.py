"""Data models shared by the rules engine, the assignment service, and ingestion."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional


# --- Vocabularies ---

CONNECTION_DEGREES = ("1st", "2nd", "3rd", "out_of_network", "unknown")
DEGREE_ORDER: Mapping[str, int] = {"1st": 1, "2nd": 2, "3rd": 3, "out_of_network": 4}
PROFILE_VISIBILITIES = ("public", "limited", "private")
SEARCH_SOURCES = ("basic_search", "sales_navigator", "recruiter_search", "post_engagement", "csv_upload")
CAMPAIGN_TYPES = ("connection_request", "direct_message", "inmail", "email", "multi_channel")
TARGET_AUDIENCES = ("general", "sales_professionals", "recruiters", "c_suite", "specific_industry")
SEVERITIES = ("error", "warning", "info")
SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_INFO = SEVERITIES
PRIORITIES = ("critical", "high", "medium", "low")
ASSIGNMENT_STATUSES = ("assigned", "contacted", "responded", "connected", "unqualified", "bounced", "opted_out")


# --- Engine Inputs ---

@dataclass(slots=True)
class LeadProfile:
    """A prospective contact as seen by the rules engine."""

    id: str
    name: str
    search_source: str
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    connection_degree: Optional[str] = None
    mutual_connections: Optional[int] = None
    follower_count: Optional[int] = None
    premium_account: bool = False
    open_to_work: bool = False
    profile_visibility: Optional[str] = None
    last_activity: Optional[str] = None
    profile_completeness: Optional[int] = None
    has_company_page: bool = False
    industry: Optional[str] = None
    seniority_level: Optional[str] = None
    profile_type: Optional[str] = None

    def display_name(self) -> str:
        return self.name or f"(Lead {self.id})"

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> "LeadProfile":
        """Build a profile from a persisted record, ignoring unknown columns."""

        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in record.items() if key in known})


@dataclass(slots=True)
class CampaignProfile:
    """Targeting and eligibility policy of an outreach campaign."""

    id: str
    name: str
    type: str
    allowed_search_sources: List[str] = field(default_factory=list)
    target_audience: str = "general"
    connection_required: bool = False
    premium_required: bool = False
    email_required: bool = False
    phone_required: bool = False
    min_mutual_connections: Optional[int] = None
    max_connection_degree: Optional[str] = None
    min_profile_completeness: Optional[int] = None
    excluded_industries: List[str] = field(default_factory=list)
    excluded_titles: List[str] = field(default_factory=list)
    max_leads_per_day: Optional[int] = None
    current_leads_today: Optional[int] = None
    current_leads_total: int = 0

    def copy(self) -> "CampaignProfile":
        """Return a copy that shares no lists with this profile."""

        return replace(
            self,
            allowed_search_sources=list(self.allowed_search_sources),
            excluded_industries=list(self.excluded_industries),
            excluded_titles=list(self.excluded_titles),
        )


# --- Rules ---

@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """Verdict of a single rule for one lead/campaign pair."""

    is_valid: bool
    severity: str = "info"
    reason: Optional[str] = None
    suggestion: Optional[str] = None

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity '{self.severity}', expected one of {SEVERITIES}")

    @classmethod
    def passed(cls) -> "RuleOutcome":
        return cls(is_valid=True, severity=SEVERITY_INFO)

    @classmethod
    def error(cls, reason: str, suggestion: Optional[str] = None) -> "RuleOutcome":
        return cls(is_valid=False, severity=SEVERITY_ERROR, reason=reason, suggestion=suggestion)

    @classmethod
    def warning(cls, reason: str, suggestion: Optional[str] = None, *, is_valid: bool = False) -> "RuleOutcome":
        return cls(is_valid=is_valid, severity=SEVERITY_WARNING, reason=reason, suggestion=suggestion)


RuleFunction = Callable[[LeadProfile, CampaignProfile], RuleOutcome]


@dataclass(frozen=True)
class ValidationRule:
    """A named eligibility check.

    ``priority`` is descriptive only: every registered rule runs for every
    evaluation regardless of what the others return.
    """

    id: str
    name: str
    description: str
    priority: str
    validator: RuleFunction

    def __call__(self, lead: LeadProfile, campaign: CampaignProfile) -> RuleOutcome:
        return self.validator(lead, campaign)


# --- Engine Outputs ---

@dataclass
class CampaignAssignmentResult:
    """Aggregated verdict for one or more leads against a single campaign."""

    can_assign: bool
    blocked_reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    valid_leads_count: int = 0
    total_leads_count: int = 0
    estimated_success_rate: Optional[int] = None
    pass_rate: Optional[int] = None

    def copy(self) -> "CampaignAssignmentResult":
        return replace(
            self,
            blocked_reasons=list(self.blocked_reasons),
            warnings=list(self.warnings),
            suggestions=list(self.suggestions),
        )

    def as_row(self) -> Dict[str, Any]:
        """Return a flat, export-friendly representation."""

        return {
            "can_assign": self.can_assign,
            "blocked_reasons": "; ".join(self.blocked_reasons),
            "warnings": "; ".join(self.warnings),
            "suggestions": "; ".join(self.suggestions),
            "valid_leads_count": self.valid_leads_count,
            "total_leads_count": self.total_leads_count,
            "estimated_success_rate": self.estimated_success_rate,
        }


@dataclass
class CompatibilitySummary:
    """How well a lead set fits one campaign."""

    campaign: CampaignProfile
    compatible_leads: int
    total_leads: int
    compatibility_score: float
    top_issues: List[str] = field(default_factory=list)


# --- Assignment Workflow ---

@dataclass
class CampaignAssignment:
    """A persisted link between a lead and a campaign."""

    id: str
    campaign_id: str
    lead_id: str
    status: str = "assigned"
    priority: int = 1
    validation_passed: bool = True
    validation_warnings: List[str] = field(default_factory=list)
    validation_suggestions: List[str] = field(default_factory=list)
    estimated_success_rate: Optional[int] = None
    assigned_by: Optional[str] = None
    assigned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    first_contact_at: Optional[datetime] = None
    last_contact_at: Optional[datetime] = None
    response_at: Optional[datetime] = None
    connection_at: Optional[datetime] = None
    total_messages: int = 0
    custom_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AssignmentOutcome:
    """Counts and per-lead errors for a batch assignment."""

    assigned: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class AssignmentPage:
    """One page of a campaign's assignments plus the unpaged match count."""

    assignments: List[CampaignAssignment] = field(default_factory=list)
    total: int = 0


# --- Analytics ---

@dataclass(slots=True)
class CampaignDailyAnalytics:
    """Activity recorded for one campaign on one day."""

    campaign_id: str
    date: date
    leads_assigned: int = 0
    messages_sent: int = 0
    responses_received: int = 0
    connections_made: int = 0
    total_cost: float = 0.0


@dataclass
class CampaignAnalytics:
    """Daily rows for a campaign, their totals and the derived rates."""

    daily: List[CampaignDailyAnalytics] = field(default_factory=list)
    leads_assigned: int = 0
    messages_sent: int = 0
    responses_received: int = 0
    connections_made: int = 0
    total_cost: float = 0.0
    response_rate: int = 0
    connection_rate: int = 0

    def totals(self) -> Dict[str, Any]:
        return {
            "leads_assigned": self.leads_assigned,
            "messages_sent": self.messages_sent,
            "responses_received": self.responses_received,
            "connections_made": self.connections_made,
            "total_cost": self.total_cost,
        }
