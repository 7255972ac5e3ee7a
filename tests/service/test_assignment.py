from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone

import pytest

from campaign_rules.cache import ValidationCache
from campaign_rules.engine import CampaignRulesEngine
from campaign_rules.service import (
    CampaignAssignmentService,
    DuplicateAssignmentError,
    InMemoryCampaignRepository,
    RecordNotFoundError,
)
from campaign_rules.models import CampaignAssignment, CampaignDailyAnalytics
from campaign_rules.service.assignment import DEFAULT_PAGE_SIZE


class CountingRepository(InMemoryCampaignRepository):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.lead_reads = 0

    def get_lead(self, lead_id):
        self.lead_reads += 1
        return super().get_lead(lead_id)


@pytest.fixture()
def repository(make_lead, make_campaign):
    leads = [
        make_lead(id="good-1"),
        make_lead(id="good-2", connection_degree="2nd"),
        make_lead(id="no-url", linkedin_url=None),
    ]
    campaigns = [make_campaign(id="campaign-1", max_leads_per_day=10, current_leads_today=0)]
    return CountingRepository(leads, campaigns)


def test_validate_lead_uses_cache(repository) -> None:
    service = CampaignAssignmentService(repository)

    first = service.validate_lead("good-1", "campaign-1")
    second = service.validate_lead("good-1", "campaign-1")

    assert first.can_assign
    assert second == first
    assert second is not first
    assert repository.lead_reads == 1

    service.validate_lead("good-1", "campaign-1", force_refresh=True)
    assert repository.lead_reads == 2


def test_expired_cache_entries_are_recomputed(repository) -> None:
    now = [0.0]
    service = CampaignAssignmentService(repository, cache=ValidationCache(ttl_seconds=10, clock=lambda: now[0]))

    service.validate_lead("good-1", "campaign-1")
    now[0] = 11.0
    service.validate_lead("good-1", "campaign-1")

    assert repository.lead_reads == 2


def test_validate_lead_with_unknown_ids(repository) -> None:
    service = CampaignAssignmentService(repository)

    with pytest.raises(RecordNotFoundError):
        service.validate_lead("missing", "campaign-1")
    with pytest.raises(LookupError):
        service.validate_lead("good-1", "missing")


@pytest.mark.parametrize("concurrent", [False, True])
def test_validate_leads_counts_unresolved_ids_as_invalid(repository, concurrent) -> None:
    service = CampaignAssignmentService(repository, concurrent=concurrent, max_workers=2)

    result = service.validate_leads(["good-1", "no-url", "missing"], "campaign-1")

    assert result.can_assign
    assert result.valid_leads_count == 1
    assert result.total_leads_count == 3
    assert result.blocked_reasons == ["No valid LinkedIn profile found"]
    assert result.pass_rate == 33


def test_assign_leads_assigns_valid_leads_and_updates_counter(repository) -> None:
    service = CampaignAssignmentService(repository)

    outcome = service.assign_leads(["good-1", "good-2", "no-url"], "campaign-1", assigned_by="user-1")

    assert outcome.assigned == 2
    assert outcome.failed == 1
    assert outcome.errors == ["Lead no-url: No valid LinkedIn profile found"]
    campaign = repository.get_campaign("campaign-1")
    assert campaign.current_leads_today == 2
    assert campaign.current_leads_total == 2

    assignments = service.list_assignments("campaign-1")
    assert {assignment.lead_id for assignment in assignments} == {"good-1", "good-2"}
    assert all(assignment.assigned_by == "user-1" for assignment in assignments)
    assert all(assignment.estimated_success_rate is not None for assignment in assignments)


def test_assign_leads_reports_duplicates(repository) -> None:
    service = CampaignAssignmentService(repository)
    service.assign_leads(["good-1"], "campaign-1")

    outcome = service.assign_leads(["good-1", "good-2"], "campaign-1")

    assert outcome.assigned == 1
    assert outcome.failed == 1
    assert outcome.errors == ["Lead good-1 already assigned to this campaign"]
    assert repository.get_campaign("campaign-1").current_leads_today == 2


def test_assign_leads_when_nothing_is_valid(repository) -> None:
    service = CampaignAssignmentService(repository)

    outcome = service.assign_leads(["no-url"], "campaign-1")

    assert outcome.assigned == 0
    assert outcome.failed == 1
    assert outcome.errors == ["No leads passed validation: No valid LinkedIn profile found"]


def test_assign_leads_refuses_batch_over_daily_limit(make_lead, make_campaign) -> None:
    leads = [make_lead(id=f"lead-{index}") for index in range(3)]
    repository = InMemoryCampaignRepository(
        leads, [make_campaign(id="campaign-1", max_leads_per_day=10, current_leads_today=8)]
    )
    service = CampaignAssignmentService(repository)

    outcome = service.assign_leads([lead.id for lead in leads], "campaign-1")

    assert outcome.assigned == 0
    assert outcome.failed == 3
    assert outcome.errors == ["Would exceed daily limit: 11/10"]
    assert repository.get_campaign("campaign-1").current_leads_today == 8


def test_assignment_invalidates_stale_daily_limit_verdicts(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository(
        [make_lead(id="a"), make_lead(id="b")],
        [make_campaign(id="campaign-1", max_leads_per_day=1, current_leads_today=0)],
    )
    service = CampaignAssignmentService(repository)
    assert service.validate_lead("b", "campaign-1").can_assign

    service.assign_leads(["a"], "campaign-1")

    result = service.validate_lead("b", "campaign-1")
    assert not result.can_assign
    assert result.blocked_reasons == ["Daily limit reached: 1/1 leads"]


def test_concurrent_assignments_never_exceed_daily_limit(make_lead, make_campaign) -> None:
    leads = [make_lead(id=f"lead-{index}") for index in range(20)]
    repository = InMemoryCampaignRepository(
        leads, [make_campaign(id="campaign-1", max_leads_per_day=7, current_leads_today=0)]
    )
    service = CampaignAssignmentService(repository)

    def worker(lead_id: str) -> None:
        service.assign_leads([lead_id], "campaign-1")

    threads = [threading.Thread(target=worker, args=(lead.id,)) for lead in leads]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    campaign = repository.get_campaign("campaign-1")
    assert campaign.current_leads_today == 7
    assert len(service.list_assignments("campaign-1")) == 7


def test_update_assignment_status_sets_timestamps(repository) -> None:
    service = CampaignAssignmentService(repository)
    service.assign_leads(["good-1"], "campaign-1")
    assignment = service.list_assignments("campaign-1")[0]

    contacted = service.update_assignment_status(assignment.id, "contacted")
    first_contact = contacted.first_contact_at
    assert first_contact is not None
    assert contacted.last_contact_at is not None

    again = service.update_assignment_status(assignment.id, "contacted")
    assert again.first_contact_at == first_contact

    responded = service.update_assignment_status(assignment.id, "responded", custom_fields={"channel": "inmail"})
    assert responded.response_at is not None
    assert responded.custom_fields == {"channel": "inmail"}

    connected = service.update_assignment_status(assignment.id, "connected")
    assert connected.connection_at is not None
    assert service.list_assignments("campaign-1", status="connected") == [connected]

    with pytest.raises(ValueError):
        service.update_assignment_status(assignment.id, "ghosted")
    with pytest.raises(RecordNotFoundError):
        service.update_assignment_status("missing", "contacted")


def test_repository_rejects_duplicate_pairs(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository([make_lead()], [make_campaign()])
    repository.add_assignment(CampaignAssignment(id="", campaign_id="campaign-1", lead_id="lead-1"))

    with pytest.raises(DuplicateAssignmentError):
        repository.add_assignment(CampaignAssignment(id="", campaign_id="campaign-1", lead_id="lead-1"))

    repository.reset_daily_counters()
    assert repository.get_campaign("campaign-1").current_leads_today == 0


class InterleavingEngine(CampaignRulesEngine):
    """Runs ``hook`` once, after computing the verdict for ``lead_id``."""

    def __init__(self, lead_id: str) -> None:
        super().__init__()
        self.lead_id = lead_id
        self.hook = None

    def validate_lead_for_campaign(self, lead, campaign):
        result = super().validate_lead_for_campaign(lead, campaign)
        if lead.id == self.lead_id and self.hook is not None:
            hook, self.hook = self.hook, None
            hook()
        return result


def test_verdict_computed_during_assignment_is_not_cached(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository(
        [make_lead(id="a"), make_lead(id="b")],
        [make_campaign(id="campaign-1", max_leads_per_day=1, current_leads_today=0)],
    )
    engine = InterleavingEngine("b")
    service = CampaignAssignmentService(repository, engine=engine)
    engine.hook = lambda: service.assign_leads(["a"], "campaign-1")

    in_flight = service.validate_lead("b", "campaign-1")

    assert in_flight.can_assign
    assert repository.get_campaign("campaign-1").current_leads_today == 1
    assert service.cache.get("b", "campaign-1") is None
    result = service.validate_lead("b", "campaign-1")
    assert not result.can_assign
    assert result.blocked_reasons == ["Daily limit reached: 1/1 leads"]


def test_editing_a_returned_verdict_does_not_change_the_cache(repository) -> None:
    service = CampaignAssignmentService(repository)

    first = service.validate_lead("good-1", "campaign-1")
    first.blocked_reasons.append("edited by caller")
    first.can_assign = False

    second = service.validate_lead("good-1", "campaign-1")
    assert second.can_assign
    assert second.blocked_reasons == []
    assert repository.lead_reads == 1


def test_assign_leads_ignores_repeated_ids(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository(
        [make_lead(id="a")], [make_campaign(id="campaign-1", max_leads_per_day=1, current_leads_today=0)]
    )
    service = CampaignAssignmentService(repository)

    outcome = service.assign_leads(["a", "a"], "campaign-1")

    assert outcome.assigned == 1
    assert outcome.failed == 0
    assert outcome.errors == []
    assert repository.get_campaign("campaign-1").current_leads_today == 1


def test_repository_campaign_copies_share_no_lists(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository(
        [make_lead()], [make_campaign(excluded_titles=["intern"], excluded_industries=["education"])]
    )

    campaign = repository.get_campaign("campaign-1")
    campaign.allowed_search_sources.append("post_engagement")
    campaign.excluded_titles.clear()
    repository.list_campaigns()[0].excluded_industries.clear()
    repository.increment_daily_counter("campaign-1", 1).excluded_titles.append("ceo")

    stored = repository.get_campaign("campaign-1")
    assert stored.allowed_search_sources == ["sales_navigator", "basic_search"]
    assert stored.excluded_titles == ["intern"]
    assert stored.excluded_industries == ["education"]


@pytest.fixture()
def paged_service(make_lead, make_campaign):
    repository = InMemoryCampaignRepository([make_lead()], [make_campaign()])
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for index in range(60):
        repository.add_assignment(
            CampaignAssignment(
                id=f"assignment-{index}",
                campaign_id="campaign-1",
                lead_id=f"lead-{index}",
                status="contacted" if index % 2 else "assigned",
                assigned_at=start + timedelta(hours=index),
            )
        )
    return CampaignAssignmentService(repository)


def test_campaign_assignments_are_newest_first_with_total(paged_service) -> None:
    page = paged_service.get_campaign_assignments("campaign-1")

    assert page.total == 60
    assert [assignment.id for assignment in page.assignments[:3]] == [
        "assignment-59",
        "assignment-58",
        "assignment-57",
    ]


def test_campaign_assignments_paging(paged_service) -> None:
    first = paged_service.get_campaign_assignments("campaign-1", limit=10)
    second = paged_service.get_campaign_assignments("campaign-1", limit=10, offset=10)
    default_size = paged_service.get_campaign_assignments("campaign-1", offset=5)
    contacted = paged_service.get_campaign_assignments("campaign-1", status="contacted", limit=5)

    assert [a.id for a in first.assignments] == [f"assignment-{i}" for i in range(59, 49, -1)]
    assert [a.id for a in second.assignments] == [f"assignment-{i}" for i in range(49, 39, -1)]
    assert len(default_size.assignments) == DEFAULT_PAGE_SIZE
    assert default_size.assignments[0].id == "assignment-54"
    assert first.total == second.total == default_size.total == 60
    assert contacted.total == 30
    assert all(a.status == "contacted" for a in contacted.assignments)
    assert len(contacted.assignments) == 5

    with pytest.raises(ValueError):
        paged_service.get_campaign_assignments("campaign-1", offset=-1)


def test_campaign_analytics_totals_and_rates(make_lead, make_campaign) -> None:
    repository = InMemoryCampaignRepository([make_lead()], [make_campaign(), make_campaign(id="campaign-2")])
    rows = [
        CampaignDailyAnalytics("campaign-1", date(2024, 3, 1), 10, 20, 3, 4, 1.5),
        CampaignDailyAnalytics("campaign-1", date(2024, 3, 2), 5, 10, 2, 1, 2.25),
        CampaignDailyAnalytics("campaign-1", date(2024, 3, 5), 1, 1, 1, 1, 0.25),
        CampaignDailyAnalytics("campaign-2", date(2024, 3, 1), 99, 99, 99, 99, 99.0),
    ]
    for row in rows:
        repository.record_daily_analytics(row)
    service = CampaignAssignmentService(repository)

    analytics = service.get_campaign_analytics("campaign-1", date_from=date(2024, 3, 1), date_to=date(2024, 3, 2))

    assert [row.date for row in analytics.daily] == [date(2024, 3, 2), date(2024, 3, 1)]
    assert analytics.totals() == {
        "leads_assigned": 15,
        "messages_sent": 30,
        "responses_received": 5,
        "connections_made": 5,
        "total_cost": 3.75,
    }
    # 5/30 = 16.67% and 5/15 = 33.33%
    assert analytics.response_rate == 17
    assert analytics.connection_rate == 33
    assert len(service.get_campaign_analytics("campaign-1").daily) == 3


def test_campaign_analytics_without_activity(repository) -> None:
    analytics = CampaignAssignmentService(repository).get_campaign_analytics("campaign-1")

    assert analytics.daily == []
    assert analytics.response_rate == 0
    assert analytics.connection_rate == 0
    assert analytics.total_cost == 0
