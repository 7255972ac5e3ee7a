"""Spreadsheet import of leads and export of validation verdicts."""

from .exporters import (
    LeadVerdict,
    export_summaries,
    export_verdicts,
    summaries_to_dataframe,
    verdicts_to_dataframe,
)
from .loaders import UnsupportedFileTypeError, load_leads

__all__ = [
    "LeadVerdict",
    "UnsupportedFileTypeError",
    "export_summaries",
    "export_verdicts",
    "load_leads",
    "summaries_to_dataframe",
    "verdicts_to_dataframe",
]
