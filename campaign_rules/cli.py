"""Command line interface for checking leads against campaign rules."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigurationError, load_campaigns, load_configuration, load_rules
from .engine import CampaignRulesEngine
from .ingestion import LeadVerdict, export_summaries, export_verdicts, load_leads
from .models import CampaignProfile
from .templates import get_campaign_templates

LOGGER = logging.getLogger(__name__)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Check which leads can be assigned to which outreach campaigns",
    )
    parser.add_argument("input", help="Path to the lead spreadsheet (CSV, TSV or XLSX)")
    parser.add_argument("output", help="Path where the per-lead verdicts should be written")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a campaign configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--campaign",
        action="append",
        dest="campaigns",
        default=None,
        metavar="ID",
        help="Only evaluate the campaign with this id (repeatable)",
    )
    parser.add_argument(
        "--templates",
        action="store_true",
        help="Evaluate against the built-in campaign templates",
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Write one compatibility row per campaign instead of one row per lead",
    )
    parser.add_argument(
        "--search-source",
        default="csv_upload",
        help="Search source recorded for rows that do not specify one",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        engine, campaigns = _load_campaigns(args)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2

    selected = _select_campaigns(campaigns, args.campaigns)
    if selected is None:
        return 2
    if not selected:
        LOGGER.warning("No campaigns are enabled - nothing to do")
        return 0

    try:
        leads = load_leads(args.input, default_search_source=args.search_source)
    except (OSError, ValueError):
        LOGGER.exception("Could not load leads from %s", args.input)
        return 1

    summaries = engine.get_campaign_compatibility(leads, selected)
    for summary in summaries:
        LOGGER.info(
            "%s: %s/%s leads compatible (%.0f%%)%s",
            summary.campaign.id,
            summary.compatible_leads,
            summary.total_leads,
            summary.compatibility_score,
            f" - top issues: {', '.join(summary.top_issues)}" if summary.top_issues else "",
        )

    try:
        if args.summary_only:
            export_summaries(summaries, args.output)
        else:
            verdicts = [
                LeadVerdict(lead=lead, campaign=campaign, result=engine.validate_lead_for_campaign(lead, campaign))
                for lead in leads
                for campaign in selected
            ]
            export_verdicts(verdicts, args.output)
    except (OSError, ValueError):
        LOGGER.exception("Could not write results to %s", args.output)
        return 1

    LOGGER.info("Processed %s leads against %s campaigns", len(leads), len(selected))
    LOGGER.info("Results written to %s", Path(args.output).resolve())
    return 0


def _load_campaigns(args: argparse.Namespace) -> tuple[CampaignRulesEngine, List[CampaignProfile]]:
    if args.config is None:
        return CampaignRulesEngine(), get_campaign_templates()

    config = load_configuration(args.config)
    campaigns = load_campaigns(config)
    if args.templates:
        campaigns = get_campaign_templates() + campaigns
    return CampaignRulesEngine(load_rules(config)), campaigns


def _select_campaigns(
    campaigns: List[CampaignProfile], wanted: Optional[Sequence[str]]
) -> Optional[List[CampaignProfile]]:
    if not wanted:
        return campaigns
    by_id = {campaign.id: campaign for campaign in campaigns}
    missing = [campaign_id for campaign_id in wanted if campaign_id not in by_id]
    if missing:
        LOGGER.error("Unknown campaign ids: %s. Available: %s", ", ".join(missing), ", ".join(sorted(by_id)))
        return None
    return [by_id[campaign_id] for campaign_id in wanted]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
