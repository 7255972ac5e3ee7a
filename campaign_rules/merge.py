"""Utility helpers for merging per-lead verdicts into a batch verdict."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import CampaignAssignmentResult
from .scoring import mean_rate, round_half_up


def unique_in_order(values: Iterable[str]) -> List[str]:
    """Deduplicate by exact string equality, keeping first-seen order."""

    seen: set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def merge_assignment_results(
    results: Sequence[CampaignAssignmentResult],
    *,
    total_leads: Optional[int] = None,
    estimated_success_rate: Optional[int] = None,
) -> CampaignAssignmentResult:
    """Merge single-lead results into one batch result.

    ``total_leads`` defaults to the number of results; callers that dropped
    leads before validation pass the original count so those leads count as
    not valid. When ``estimated_success_rate`` is not given, the mean of the
    per-result estimates is used.
    """

    blocked: List[str] = []
    warnings: List[str] = []
    suggestions: List[str] = []
    valid_leads = 0
    estimates: List[int] = []

    for result in results:
        if result.can_assign:
            valid_leads += 1
        blocked.extend(result.blocked_reasons)
        warnings.extend(result.warnings)
        suggestions.extend(result.suggestions)
        if result.estimated_success_rate is not None:
            estimates.append(result.estimated_success_rate)

    total = len(results) if total_leads is None else total_leads
    if estimated_success_rate is None:
        estimated_success_rate = mean_rate(estimates)

    return CampaignAssignmentResult(
        can_assign=valid_leads > 0,
        blocked_reasons=unique_in_order(blocked),
        warnings=unique_in_order(warnings),
        suggestions=unique_in_order(suggestions),
        valid_leads_count=valid_leads,
        total_leads_count=total,
        estimated_success_rate=estimated_success_rate,
        pass_rate=round_half_up(valid_leads / total * 100) if total else 0,
    )


__all__ = ["unique_in_order", "merge_assignment_results"]
