"""Export utilities for lead/campaign verdicts."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import CampaignAssignmentResult, CampaignProfile, CompatibilitySummary, LeadProfile

PathLike = Union[str, Path]


@dataclass
class LeadVerdict:
    """One lead evaluated against one campaign, ready to be written out."""

    lead: LeadProfile
    campaign: CampaignProfile
    result: CampaignAssignmentResult


def verdicts_to_dataframe(verdicts: Sequence[LeadVerdict]) -> pd.DataFrame:
    """Convert verdicts into a :class:`pandas.DataFrame`, one row per pair."""

    records = [_verdict_to_row(verdict) for verdict in verdicts]
    return pd.DataFrame(records, columns=_VERDICT_COLUMNS)


def summaries_to_dataframe(summaries: Sequence[CompatibilitySummary]) -> pd.DataFrame:
    records = [
        {
            "campaign_id": summary.campaign.id,
            "campaign_name": summary.campaign.name,
            "compatible_leads": summary.compatible_leads,
            "total_leads": summary.total_leads,
            "compatibility_score": round(summary.compatibility_score, 1),
            "top_issues": "; ".join(summary.top_issues),
        }
        for summary in summaries
    ]
    return pd.DataFrame(records)


def export_verdicts(
    verdicts: Sequence[LeadVerdict],
    path: PathLike,
    *,
    sheet_name: str = "Verdicts",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write verdicts to a CSV, TSV or Excel file."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(verdicts_to_dataframe(verdicts), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def export_summaries(
    summaries: Sequence[CompatibilitySummary],
    path: PathLike,
    *,
    sheet_name: str = "Compatibility",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(summaries_to_dataframe(summaries), output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


_VERDICT_COLUMNS: List[str] = [
    "lead_id",
    "lead_name",
    "linkedin_url",
    "campaign_id",
    "campaign_name",
    "can_assign",
    "blocked_reasons",
    "warnings",
    "suggestions",
    "estimated_success_rate",
]


def _verdict_to_row(verdict: LeadVerdict) -> MutableMapping[str, object]:
    row: MutableMapping[str, object] = {
        "lead_id": verdict.lead.id,
        "lead_name": verdict.lead.display_name(),
        "linkedin_url": verdict.lead.linkedin_url or "",
        "campaign_id": verdict.campaign.id,
        "campaign_name": verdict.campaign.name,
    }
    result_row = verdict.result.as_row()
    for column in ("can_assign", "blocked_reasons", "warnings", "suggestions", "estimated_success_rate"):
        row[column] = result_row[column]
    return row


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


__all__ = [
    "LeadVerdict",
    "export_summaries",
    "export_verdicts",
    "summaries_to_dataframe",
    "verdicts_to_dataframe",
]
