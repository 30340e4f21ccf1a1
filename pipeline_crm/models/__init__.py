"""SQLAlchemy models for the prospect store and its history log."""

from pipeline_crm.models.base import Base
from pipeline_crm.models.prospect import Prospect
from pipeline_crm.models.prospect_history import ProspectHistory

__all__ = [
    "Base",
    "Prospect",
    "ProspectHistory",
]
