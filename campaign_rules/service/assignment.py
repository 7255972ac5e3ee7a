"""Assignment workflow that wraps the rules engine with caching and persistence."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from ..cache import ValidationCache
from ..engine import CampaignRulesEngine
from ..merge import merge_assignment_results, unique_in_order
from ..models import (
    ASSIGNMENT_STATUSES,
    AssignmentOutcome,
    AssignmentPage,
    CampaignAnalytics,
    CampaignAssignment,
    CampaignAssignmentResult,
)
from ..scoring import round_half_up
from .repository import CampaignRepository, DuplicateAssignmentError, RecordNotFoundError

LOGGER = logging.getLogger(__name__)

LeadVerdict = Tuple[str, Optional[CampaignAssignmentResult]]

DEFAULT_PAGE_SIZE = 50


class CampaignAssignmentService:
    """Validates and assigns stored leads to stored campaigns.

    Assignments to the same campaign are serialised so that the daily
    capacity check and the counter increment happen as one step. Each
    increment bumps the campaign's generation; verdicts computed against an
    older generation are returned but never cached.
    """

    def __init__(
        self,
        repository: CampaignRepository,
        *,
        engine: Optional[CampaignRulesEngine] = None,
        cache: Optional[ValidationCache] = None,
        concurrent: bool = False,
        max_workers: Optional[int] = None,
    ) -> None:
        self._repository = repository
        self._engine = engine or CampaignRulesEngine()
        self._cache = cache if cache is not None else ValidationCache()
        self._concurrent = concurrent
        self._max_workers = max_workers
        self._locks_guard = threading.Lock()
        self._campaign_locks: Dict[str, threading.Lock] = {}
        self._generations: Dict[str, int] = {}

    @property
    def cache(self) -> ValidationCache:
        return self._cache

    def validate_lead(
        self, lead_id: str, campaign_id: str, *, force_refresh: bool = False
    ) -> CampaignAssignmentResult:
        """Return the cached verdict for the pair, computing it when needed."""

        if not force_refresh:
            cached = self._cache.get(lead_id, campaign_id)
            if cached is not None:
                LOGGER.debug("Cache hit for lead %s / campaign %s", lead_id, campaign_id)
                return cached

        generation = self._generation(campaign_id)
        lead = self._repository.get_lead(lead_id)
        campaign = self._repository.get_campaign(campaign_id)

        started = time.perf_counter()
        result = self._engine.validate_lead_for_campaign(lead, campaign)
        elapsed_ms = (time.perf_counter() - started) * 1000

        with self._locks_guard:
            if self._generations.get(campaign_id, 0) == generation:
                self._cache.put(lead_id, campaign_id, result, computation_time_ms=elapsed_ms)
            else:
                LOGGER.debug("Not caching stale verdict for lead %s / campaign %s", lead_id, campaign_id)
        return result

    def validate_leads(self, lead_ids: Sequence[str], campaign_id: str) -> CampaignAssignmentResult:
        """Validate many stored leads; ids that cannot be resolved count as invalid."""

        self._repository.get_campaign(campaign_id)
        verdicts = self._validate_each(lead_ids, campaign_id)
        return merge_assignment_results(
            [result for _, result in verdicts if result is not None],
            total_leads=len(lead_ids),
        )

    def assign_leads(
        self, lead_ids: Sequence[str], campaign_id: str, *, assigned_by: Optional[str] = None
    ) -> AssignmentOutcome:
        """Assign every valid lead, refusing batches that would exceed the daily limit.

        Repeated ids in ``lead_ids`` are assigned once.
        """

        lead_ids = unique_in_order(lead_ids)
        with self._lock_for(campaign_id):
            campaign = self._repository.get_campaign(campaign_id)
            verdicts = self._validate_each(lead_ids, campaign_id, force_refresh=True)
            valid_count = sum(1 for _, result in verdicts if result is not None and result.can_assign)

            if valid_count == 0:
                blocked = merge_assignment_results([r for _, r in verdicts if r is not None]).blocked_reasons
                return AssignmentOutcome(
                    assigned=0,
                    failed=len(lead_ids),
                    errors=[f"No leads passed validation: {', '.join(blocked)}"],
                )

            if campaign.max_leads_per_day is not None:
                projected = (campaign.current_leads_today or 0) + valid_count
                if projected > campaign.max_leads_per_day:
                    LOGGER.warning(
                        "Refusing batch for campaign %s: %s/%s", campaign_id, projected, campaign.max_leads_per_day
                    )
                    return AssignmentOutcome(
                        assigned=0,
                        failed=len(lead_ids),
                        errors=[f"Would exceed daily limit: {projected}/{campaign.max_leads_per_day}"],
                    )

            outcome = AssignmentOutcome()
            for lead_id, result in verdicts:
                if result is None:
                    outcome.failed += 1
                    outcome.errors.append(f"Lead {lead_id}: not found")
                    continue
                if not result.can_assign:
                    outcome.failed += 1
                    outcome.errors.append(f"Lead {lead_id}: {', '.join(result.blocked_reasons)}")
                    continue
                try:
                    self._repository.add_assignment(
                        CampaignAssignment(
                            id="",
                            campaign_id=campaign_id,
                            lead_id=lead_id,
                            assigned_by=assigned_by,
                            validation_warnings=list(result.warnings),
                            validation_suggestions=list(result.suggestions),
                            estimated_success_rate=result.estimated_success_rate,
                        )
                    )
                except DuplicateAssignmentError as exc:
                    outcome.failed += 1
                    outcome.errors.append(str(exc))
                    continue
                outcome.assigned += 1

            if outcome.assigned:
                self._repository.increment_daily_counter(campaign_id, outcome.assigned)
                # Cached verdicts were computed against the old counter.
                with self._locks_guard:
                    self._generations[campaign_id] = self._generations.get(campaign_id, 0) + 1
                    self._cache.invalidate(campaign_id=campaign_id)

        LOGGER.info(
            "Assigned %s leads to campaign %s (%s failed)", outcome.assigned, campaign_id, outcome.failed
        )
        return outcome

    def update_assignment_status(
        self,
        assignment_id: str,
        status: str,
        *,
        custom_fields: Optional[dict] = None,
    ) -> CampaignAssignment:
        """Move an assignment to ``status`` and stamp the matching timestamp."""

        if status not in ASSIGNMENT_STATUSES:
            raise ValueError(f"Unknown assignment status '{status}'")

        assignment = replace(self._repository.get_assignment(assignment_id), status=status)
        now = datetime.now(timezone.utc)
        if status == "contacted":
            assignment.first_contact_at = assignment.first_contact_at or now
            assignment.last_contact_at = now
        elif status == "responded":
            assignment.response_at = now
        elif status == "connected":
            assignment.connection_at = now
        if custom_fields:
            assignment.custom_fields = dict(custom_fields)
        return self._repository.update_assignment(assignment)

    def list_assignments(self, campaign_id: str, *, status: Optional[str] = None) -> List[CampaignAssignment]:
        return self._repository.list_assignments(campaign_id, status=status)

    def get_campaign_assignments(
        self,
        campaign_id: str,
        *,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> AssignmentPage:
        """Return one page of assignments, newest first, with the unpaged total.

        An ``offset`` without a ``limit`` pages by :data:`DEFAULT_PAGE_SIZE`.
        """

        if offset < 0 or (limit is not None and limit < 0):
            raise ValueError("limit and offset must not be negative")

        assignments = self._repository.list_assignments(campaign_id, status=status)
        if offset:
            stop: Optional[int] = offset + (limit or DEFAULT_PAGE_SIZE)
        else:
            stop = limit
        return AssignmentPage(assignments=assignments[offset:stop], total=len(assignments))

    def get_campaign_analytics(
        self,
        campaign_id: str,
        *,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CampaignAnalytics:
        """Total the campaign's daily activity and derive response/connection rates."""

        daily = self._repository.list_daily_analytics(campaign_id, date_from=date_from, date_to=date_to)
        analytics = CampaignAnalytics(
            daily=daily,
            leads_assigned=sum(row.leads_assigned for row in daily),
            messages_sent=sum(row.messages_sent for row in daily),
            responses_received=sum(row.responses_received for row in daily),
            connections_made=sum(row.connections_made for row in daily),
            total_cost=sum(row.total_cost for row in daily),
        )
        if analytics.messages_sent:
            analytics.response_rate = round_half_up(analytics.responses_received / analytics.messages_sent * 100)
        if analytics.leads_assigned:
            analytics.connection_rate = round_half_up(analytics.connections_made / analytics.leads_assigned * 100)
        return analytics

    def _validate_each(
        self, lead_ids: Sequence[str], campaign_id: str, *, force_refresh: bool = False
    ) -> List[LeadVerdict]:
        if not self._concurrent or len(lead_ids) <= 1:
            return [self._validate_or_skip(lead_id, campaign_id, force_refresh) for lead_id in lead_ids]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = [
                executor.submit(self._validate_or_skip, lead_id, campaign_id, force_refresh) for lead_id in lead_ids
            ]
            return [future.result() for future in futures]

    def _validate_or_skip(self, lead_id: str, campaign_id: str, force_refresh: bool) -> LeadVerdict:
        try:
            return lead_id, self.validate_lead(lead_id, campaign_id, force_refresh=force_refresh)
        except RecordNotFoundError:
            LOGGER.warning("Skipping lead %s for campaign %s: record not found", lead_id, campaign_id)
            return lead_id, None

    def _lock_for(self, campaign_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._campaign_locks.setdefault(campaign_id, threading.Lock())

    def _generation(self, campaign_id: str) -> int:
        with self._locks_guard:
            return self._generations.get(campaign_id, 0)


__all__ = ["DEFAULT_PAGE_SIZE", "CampaignAssignmentService"]
