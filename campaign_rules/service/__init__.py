"""Assignment workflow built on top of the rules engine."""

from .assignment import CampaignAssignmentService
from .repository import (
    CampaignRepository,
    DuplicateAssignmentError,
    InMemoryCampaignRepository,
    RecordNotFoundError,
)

__all__ = [
    "CampaignAssignmentService",
    "CampaignRepository",
    "DuplicateAssignmentError",
    "InMemoryCampaignRepository",
    "RecordNotFoundError",
]
