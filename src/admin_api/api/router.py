"""Top-level API router."""

from fastapi import APIRouter

from admin_api.api import diploma, inbox, staff

api_router = APIRouter()

api_router.include_router(inbox.router)
api_router.include_router(staff.router)
api_router.include_router(diploma.router)
