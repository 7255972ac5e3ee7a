"""Utilities for loading lead profiles from spreadsheets."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import CONNECTION_DEGREES, PROFILE_VISIBILITIES, SEARCH_SOURCES, LeadProfile

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "id": ("id", "lead_id", "source_id", "record_id"),
    "name": ("name", "full_name"),
    "first_name": ("first_name", "firstname", "first"),
    "last_name": ("last_name", "lastname", "last"),
    "title": ("title", "job_title", "headline", "position"),
    "company": ("company", "organisation", "organization", "employer"),
    "location": ("location", "city"),
    "linkedin_url": ("linkedin_url", "linkedin", "profile_url", "linkedin_profile"),
    "email": ("email", "email_address", "primary_email"),
    "phone": ("phone", "phone_number", "primary_phone"),
    "connection_degree": ("connection_degree", "degree", "connection"),
    "mutual_connections": ("mutual_connections", "mutuals", "shared_connections"),
    "follower_count": ("follower_count", "followers"),
    "premium_account": ("premium_account", "premium", "is_premium"),
    "open_to_work": ("open_to_work",),
    "profile_visibility": ("profile_visibility", "visibility"),
    "last_activity": ("last_activity",),
    "profile_completeness": ("profile_completeness", "completeness"),
    "has_company_page": ("has_company_page",),
    "industry": ("industry", "sector"),
    "seniority_level": ("seniority_level", "seniority"),
    "search_source": ("search_source", "source"),
    "profile_type": ("profile_type",),
}

_INTEGER_FIELDS = {"mutual_connections", "follower_count", "profile_completeness"}
_BOOLEAN_FIELDS = {"premium_account", "open_to_work", "has_company_page"}
_TRUE_VALUES = {"true", "yes", "y", "1", "t"}
_FALSE_VALUES = {"false", "no", "n", "0", "f", ""}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def load_leads(
    path: PathLike,
    *,
    column_mapping: Optional[Mapping[str, str]] = None,
    default_search_source: str = "csv_upload",
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[LeadProfile]:
    """Load lead profiles from a spreadsheet.

    Parameters
    ----------
    path:
        Path to the CSV/TSV/XLSX file to be loaded.
    column_mapping:
        Optional mapping of :class:`LeadProfile` field names to column names.
        Unmapped fields are matched against a list of common column names.
    default_search_source:
        Search source recorded for rows that do not carry one. Spreadsheet
        imports are ``csv_upload`` unless the file says otherwise.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_csv` or
        :func:`pandas.read_excel`.
    """

    dataframe = _read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    resolved = {field: _resolve_column(field, dataframe.columns, mapping) for field in _FIELD_SYNONYMS}

    leads: List[LeadProfile] = []
    for position, (_, row) in enumerate(dataframe.iterrows(), start=1):
        if _row_is_empty(row):
            continue
        leads.append(_row_to_lead(row, resolved, position, default_search_source))

    LOGGER.debug("Loaded %s leads from %s", len(leads), path)
    return leads


def _read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = loader_kwargs.pop("engine", None) or "openpyxl"
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=engine, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _row_is_empty(row: pd.Series) -> bool:
    return all(pd.isna(value) or (isinstance(value, str) and not value.strip()) for value in row.values)


def _row_to_lead(
    row: pd.Series,
    columns: Mapping[str, Optional[str]],
    position: int,
    default_search_source: str,
) -> LeadProfile:
    values = {field: _extract(row, column) for field, column in columns.items()}

    first_name = values.pop("first_name")
    last_name = values.pop("last_name")
    if not values["name"]:
        values["name"] = " ".join(filter(None, [first_name, last_name]))
    if not values["id"]:
        values["id"] = f"row-{position}"
    if not values["search_source"]:
        values["search_source"] = default_search_source

    record: dict[str, Any] = {}
    for field, value in values.items():
        if field in _INTEGER_FIELDS:
            record[field] = _to_int(value, field)
        elif field in _BOOLEAN_FIELDS:
            record[field] = _to_bool(value, field)
        else:
            record[field] = value

    degree = record["connection_degree"]
    if degree is not None and degree not in CONNECTION_DEGREES:
        LOGGER.warning("Row %s: unrecognised connection degree %r, using 'unknown'", position, degree)
        record["connection_degree"] = "unknown"
    visibility = record["profile_visibility"]
    if visibility is not None and visibility not in PROFILE_VISIBILITIES:
        LOGGER.warning("Row %s: ignoring unrecognised profile visibility %r", position, visibility)
        record["profile_visibility"] = None
    if record["search_source"] not in SEARCH_SOURCES:
        LOGGER.warning("Row %s: unrecognised search source %r", position, record["search_source"])
    return LeadProfile.from_mapping(record)


def _resolve_column(
    field: str,
    available_columns: Iterable[str],
    mapping: Mapping[str, str],
) -> Optional[str]:
    if field in mapping:
        return mapping[field]

    synonyms = _FIELD_SYNONYMS.get(field, (field,))
    normalised = {_normalise_header(column): column for column in available_columns}
    for synonym in synonyms:
        if synonym in normalised:
            return normalised[synonym]
    return None


def _normalise_header(value: Any) -> str:
    return str(value).strip().lower().replace(" ", "_").replace("-", "_")


def _extract(row: pd.Series, column: Optional[str]) -> Optional[str]:
    if column is None or column not in row:
        return None
    return _clean_text(row[column])


def _clean_text(value: Any) -> Optional[str]:
    if pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _to_int(value: Optional[str], field: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value.rstrip("%")))
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s value %r", field, value)
        return None


def _to_bool(value: Optional[str], field: str) -> bool:
    if value is None:
        return False
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered not in _FALSE_VALUES:
        LOGGER.warning("Treating unrecognised %s value %r as false", field, value)
    return False


__all__ = ["load_leads", "UnsupportedFileTypeError"]
