"""Configuration helpers for campaign definitions and rule selection."""
from __future__ import annotations

import json
import logging
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from .models import CAMPAIGN_TYPES, DEGREE_ORDER, SEARCH_SOURCES, TARGET_AUDIENCES, CampaignProfile, ValidationRule
from .rules import DEFAULT_RULES, get_rule
from .templates import get_campaign_template

LOGGER = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}
_CAMPAIGN_FIELDS = {f.name for f in fields(CampaignProfile)}
_LIST_FIELDS = {"allowed_search_sources", "excluded_industries", "excluded_titles"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in '{file_path}': {exc}") from exc
    else:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - dependency optional
            raise ConfigurationError(
                "YAML configuration requires the 'pyyaml' package to be installed"
            ) from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in '{file_path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


def iter_enabled_campaign_configs(config: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    campaigns = config.get("campaigns", [])
    for campaign in campaigns:
        if campaign.get("enabled", True):
            yield campaign
        else:
            LOGGER.debug("Skipping disabled campaign %s", campaign.get("id"))


def load_campaigns(config: Dict[str, Any]) -> List[CampaignProfile]:
    """Build campaign profiles from the ``campaigns`` section of a configuration."""

    campaigns: List[CampaignProfile] = []
    seen: set[str] = set()
    for entry in iter_enabled_campaign_configs(config):
        campaign = _build_campaign(entry)
        if campaign.id in seen:
            raise ConfigurationError(f"Duplicate campaign id '{campaign.id}'")
        seen.add(campaign.id)
        campaigns.append(campaign)
    return campaigns


def load_rules(config: Dict[str, Any]) -> Tuple[ValidationRule, ...]:
    """Select the rules named in the ``rules`` section, defaulting to all of them.

    ``rules.enabled`` lists the only rules to run; ``rules.disabled`` removes
    rules from the default set. Registry order is kept either way.
    """

    section = config.get("rules") or {}
    enabled = section.get("enabled")
    disabled = set(section.get("disabled") or [])

    try:
        for rule_id in list(enabled or []) + sorted(disabled):
            get_rule(rule_id)
    except KeyError as exc:
        raise ConfigurationError(str(exc.args[0])) from exc

    selected = [rule for rule in DEFAULT_RULES if enabled is None or rule.id in enabled]
    return tuple(rule for rule in selected if rule.id not in disabled)


def _build_campaign(entry: Dict[str, Any]) -> CampaignProfile:
    options = {key: value for key, value in entry.items() if key not in {"enabled", "template"}}

    unknown = sorted(set(options) - _CAMPAIGN_FIELDS)
    if unknown:
        raise ConfigurationError(f"Unknown campaign fields: {unknown}")

    for key in _LIST_FIELDS & set(options):
        value = options[key]
        if isinstance(value, str):
            options[key] = [value]
        elif value is None:
            options[key] = []
        else:
            options[key] = list(value)

    template_id = entry.get("template")
    if template_id:
        try:
            base = get_campaign_template(template_id)
        except KeyError as exc:
            raise ConfigurationError(str(exc.args[0])) from exc
        campaign = replace(base, **options)
    else:
        missing = [key for key in ("id", "name", "type") if not options.get(key)]
        if missing:
            raise ConfigurationError(f"Campaign configuration missing required fields: {missing}")
        campaign = CampaignProfile(**options)

    _check_campaign(campaign)
    return campaign


def _check_campaign(campaign: CampaignProfile) -> None:
    if campaign.type not in CAMPAIGN_TYPES:
        raise ConfigurationError(f"Campaign '{campaign.id}' has unknown type '{campaign.type}'")
    if campaign.target_audience not in TARGET_AUDIENCES:
        raise ConfigurationError(f"Campaign '{campaign.id}' has unknown target audience '{campaign.target_audience}'")
    if campaign.max_connection_degree is not None and campaign.max_connection_degree not in DEGREE_ORDER:
        raise ConfigurationError(
            f"Campaign '{campaign.id}' has invalid max_connection_degree '{campaign.max_connection_degree}'"
        )
    unknown_sources = sorted(set(campaign.allowed_search_sources) - set(SEARCH_SOURCES))
    if unknown_sources:
        raise ConfigurationError(f"Campaign '{campaign.id}' allows unknown search sources: {unknown_sources}")


__all__ = [
    "ConfigurationError",
    "iter_enabled_campaign_configs",
    "load_campaigns",
    "load_configuration",
    "load_rules",
]
