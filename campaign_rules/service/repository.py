"""Data-access contract for the assignment service and an in-memory implementation."""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..models import CampaignAssignment, CampaignDailyAnalytics, CampaignProfile, LeadProfile

LOGGER = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when a lead, campaign, or assignment id does not resolve."""


class DuplicateAssignmentError(ValueError):
    """Raised when a lead is already assigned to the campaign."""


class CampaignRepository(Protocol):
    """Persistence operations the assignment service depends on."""

    def get_lead(self, lead_id: str) -> LeadProfile:  # pragma: no cover - protocol
        ...

    def get_campaign(self, campaign_id: str) -> CampaignProfile:  # pragma: no cover - protocol
        ...

    def list_campaigns(self) -> List[CampaignProfile]:  # pragma: no cover - protocol
        ...

    def add_assignment(self, assignment: CampaignAssignment) -> CampaignAssignment:  # pragma: no cover - protocol
        ...

    def get_assignment(self, assignment_id: str) -> CampaignAssignment:  # pragma: no cover - protocol
        ...

    def update_assignment(self, assignment: CampaignAssignment) -> CampaignAssignment:  # pragma: no cover - protocol
        ...

    def list_assignments(
        self, campaign_id: str, *, status: Optional[str] = None
    ) -> List[CampaignAssignment]:  # pragma: no cover - protocol
        ...

    def increment_daily_counter(self, campaign_id: str, count: int) -> CampaignProfile:  # pragma: no cover - protocol
        ...

    def list_daily_analytics(
        self, campaign_id: str, *, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[CampaignDailyAnalytics]:  # pragma: no cover - protocol
        ...


class InMemoryCampaignRepository:
    """Dict-backed repository, suitable for tests and single-process use.

    Campaign counters are only ever changed through
    :meth:`increment_daily_counter`, which holds the repository lock.
    """

    def __init__(
        self,
        leads: Iterable[LeadProfile] = (),
        campaigns: Iterable[CampaignProfile] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._leads: Dict[str, LeadProfile] = {lead.id: lead for lead in leads}
        self._campaigns: Dict[str, CampaignProfile] = {campaign.id: campaign for campaign in campaigns}
        self._assignments: Dict[str, CampaignAssignment] = {}
        self._analytics: Dict[Tuple[str, date], CampaignDailyAnalytics] = {}
        self._pairs: Dict[Tuple[str, str], str] = {}
        self._ids = itertools.count(1)

    def add_lead(self, lead: LeadProfile) -> None:
        with self._lock:
            self._leads[lead.id] = lead

    def add_campaign(self, campaign: CampaignProfile) -> None:
        with self._lock:
            self._campaigns[campaign.id] = campaign

    def get_lead(self, lead_id: str) -> LeadProfile:
        with self._lock:
            try:
                return self._leads[lead_id]
            except KeyError:
                raise RecordNotFoundError(f"Lead '{lead_id}' not found") from None

    def get_campaign(self, campaign_id: str) -> CampaignProfile:
        # Copies keep callers from seeing a counter change mid-evaluation
        # and from editing the stored exclusion lists.
        with self._lock:
            try:
                campaign = self._campaigns[campaign_id]
            except KeyError:
                raise RecordNotFoundError(f"Campaign '{campaign_id}' not found") from None
            return campaign.copy()

    def list_campaigns(self) -> List[CampaignProfile]:
        with self._lock:
            return [campaign.copy() for campaign in self._campaigns.values()]

    def add_assignment(self, assignment: CampaignAssignment) -> CampaignAssignment:
        pair = (assignment.campaign_id, assignment.lead_id)
        with self._lock:
            if pair in self._pairs:
                raise DuplicateAssignmentError(
                    f"Lead {assignment.lead_id} already assigned to this campaign"
                )
            if not assignment.id:
                assignment.id = f"assignment-{next(self._ids)}"
            self._assignments[assignment.id] = assignment
            self._pairs[pair] = assignment.id
        return assignment

    def get_assignment(self, assignment_id: str) -> CampaignAssignment:
        with self._lock:
            try:
                return self._assignments[assignment_id]
            except KeyError:
                raise RecordNotFoundError(f"Assignment '{assignment_id}' not found") from None

    def update_assignment(self, assignment: CampaignAssignment) -> CampaignAssignment:
        with self._lock:
            if assignment.id not in self._assignments:
                raise RecordNotFoundError(f"Assignment '{assignment.id}' not found")
            self._assignments[assignment.id] = assignment
        return assignment

    def list_assignments(self, campaign_id: str, *, status: Optional[str] = None) -> List[CampaignAssignment]:
        """Return the campaign's assignments, newest ``assigned_at`` first."""

        with self._lock:
            matches = [
                assignment
                for assignment in self._assignments.values()
                if assignment.campaign_id == campaign_id and (status is None or assignment.status == status)
            ]
        return sorted(matches, key=lambda assignment: assignment.assigned_at, reverse=True)

    def increment_daily_counter(self, campaign_id: str, count: int) -> CampaignProfile:
        with self._lock:
            try:
                campaign = self._campaigns[campaign_id]
            except KeyError:
                raise RecordNotFoundError(f"Campaign '{campaign_id}' not found") from None
            campaign.current_leads_today = (campaign.current_leads_today or 0) + count
            campaign.current_leads_total += count
            LOGGER.debug(
                "Campaign %s counter now %s/%s",
                campaign_id,
                campaign.current_leads_today,
                campaign.max_leads_per_day,
            )
            return campaign.copy()

    def reset_daily_counters(self) -> None:
        with self._lock:
            for campaign in self._campaigns.values():
                campaign.current_leads_today = 0

    def record_daily_analytics(self, row: CampaignDailyAnalytics) -> None:
        """Store the activity row for ``(row.campaign_id, row.date)``, replacing any earlier one."""

        with self._lock:
            self._analytics[(row.campaign_id, row.date)] = row

    def list_daily_analytics(
        self, campaign_id: str, *, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> List[CampaignDailyAnalytics]:
        """Return the campaign's daily rows within the inclusive range, newest first."""

        with self._lock:
            rows = [
                row
                for (row_campaign, day), row in self._analytics.items()
                if row_campaign == campaign_id
                and (date_from is None or day >= date_from)
                and (date_to is None or day <= date_to)
            ]
        return sorted(rows, key=lambda row: row.date, reverse=True)


__all__ = [
    "CampaignRepository",
    "InMemoryCampaignRepository",
    "RecordNotFoundError",
    "DuplicateAssignmentError",
]
