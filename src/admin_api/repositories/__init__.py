"""Repositories package."""

from admin_api.repositories.base import BaseRepository
from admin_api.repositories.diploma_repository import (
    DiplomaAnnouncementRepository,
    DiplomaItemRepository,
    DiplomaStudentRepository,
)
from admin_api.repositories.lead_repository import LeadEventRepository, LeadRepository
from admin_api.repositories.source_repository import SourceRowRepository
from admin_api.repositories.staff_repository import StaffRepository
from admin_api.repositories.status_repository import LeadStatusRepository

__all__ = [
    "BaseRepository",
    "LeadRepository",
    "LeadEventRepository",
    "LeadStatusRepository",
    "SourceRowRepository",
    "StaffRepository",
    "DiplomaStudentRepository",
    "DiplomaItemRepository",
    "DiplomaAnnouncementRepository",
]
