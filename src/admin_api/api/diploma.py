"""Diploma portal endpoints: student self-service and admin management."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from admin_api.api.params import flag
from admin_api.auth.dependencies import ADMIN_ROLES, get_current_claims, require_staff
from admin_api.auth.jwks import TokenClaims
from admin_api.database.models import Staff
from admin_api.dependencies import get_diploma_service
from admin_api.models.diploma import (
    AnnouncementCreateRequest,
    AnnouncementResponse,
    ItemCreateRequest,
    ItemPatchRequest,
    ItemResponse,
    StudentCreateRequest,
    StudentCreateResponse,
    StudentListResponse,
    StudentPatchRequest,
    StudentResponse,
    WelcomeEmailOutcome,
)
from admin_api.services.diploma_service import DiplomaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/diploma", tags=["diploma"])

admin_gate = require_staff(ADMIN_ROLES)


# Student-facing


@router.get("/me", response_model=StudentResponse)
async def get_me(
    claims: TokenClaims = Depends(get_current_claims),
    service: DiplomaService = Depends(get_diploma_service),
) -> StudentResponse:
    """The signed-in student's record (404 when not enrolled)."""
    student = await service.get_student_for_sub(claims.sub)
    return StudentResponse.model_validate(student)


@router.get("/me/items", response_model=List[ItemResponse])
async def get_my_items(
    claims: TokenClaims = Depends(get_current_claims),
    service: DiplomaService = Depends(get_diploma_service),
) -> List[ItemResponse]:
    items = await service.list_my_items(claims.sub)
    return [ItemResponse.model_validate(item) for item in items]


@router.get("/announcements", response_model=List[AnnouncementResponse])
async def get_announcements(
    claims: TokenClaims = Depends(get_current_claims),
    service: DiplomaService = Depends(get_diploma_service),
) -> List[AnnouncementResponse]:
    """Active announcements for all diploma students and the caller's cohort."""
    announcements = await service.list_announcements_for(claims.sub)
    return [AnnouncementResponse.model_validate(a) for a in announcements]


# Admin: students


@router.get("/admin/students", response_model=StudentListResponse, response_model_by_alias=True)
async def list_students(
    staff: Staff = Depends(admin_gate),
    page: int = Query(1),
    page_size: int = Query(25, alias="pageSize"),
    sort: Optional[str] = Query(None, description="Column, item_count or overdue_count"),
    direction: str = Query("asc", alias="dir", description="asc | desc"),
    q: Optional[str] = Query(None),
    cohort: Optional[str] = Query(None),
    has_binder: Optional[str] = Query(None),
    missing_binder: Optional[str] = Query(None),
    missing_auth0_sub: Optional[str] = Query(None),
    has_overdue: Optional[str] = Query(None),
    service: DiplomaService = Depends(get_diploma_service),
) -> StudentListResponse:
    """
    Paginated student listing.

    Boolean filters accept ``1`` or ``true``. Rows carry ``item_count`` and
    ``overdue_count``.
    """
    result = await service.list_students(
        page=page,
        page_size=page_size,
        sort=sort,
        direction="desc" if direction.lower() == "desc" else "asc",
        q=q,
        cohort=cohort,
        has_binder=flag(has_binder),
        missing_binder=flag(missing_binder),
        missing_auth0_sub=flag(missing_auth0_sub),
        has_overdue=flag(has_overdue),
    )
    return StudentListResponse.model_validate(result)


@router.post(
    "/admin/students",
    response_model=StudentCreateResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    body: StudentCreateRequest,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> StudentCreateResponse:
    data = body.model_dump(exclude={"send_welcome"})
    result = await service.create_student(data, send_welcome=body.send_welcome)
    return StudentCreateResponse(
        student=StudentResponse.model_validate(result["student"]),
        welcome_email=WelcomeEmailOutcome.model_validate(result["welcomeEmail"]),
    )


@router.get("/admin/students/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> StudentResponse:
    return StudentResponse.model_validate(await service.get_student(student_id))


@router.patch("/admin/students/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    body: StudentPatchRequest,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> StudentResponse:
    """Only provided fields are written; ``cohort`` and URLs may be cleared with null."""
    student = await service.update_student(student_id, body.model_dump(exclude_unset=True))
    return StudentResponse.model_validate(student)


# Admin: items


@router.get("/admin/students/{student_id}/items", response_model=List[ItemResponse])
async def list_student_items(
    student_id: str,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> List[ItemResponse]:
    items = await service.list_items(student_id)
    return [ItemResponse.model_validate(item) for item in items]


@router.post(
    "/admin/students/{student_id}/items",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_student_item(
    student_id: str,
    body: ItemCreateRequest,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> ItemResponse:
    item = await service.create_item(student_id, body.model_dump())
    return ItemResponse.model_validate(item)


@router.patch("/admin/items/{item_id}", response_model=ItemResponse)
async def update_student_item(
    item_id: str,
    body: ItemPatchRequest,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> ItemResponse:
    item = await service.update_item(item_id, body.model_dump(exclude_unset=True))
    return ItemResponse.model_validate(item)


@router.delete("/admin/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student_item(
    item_id: str,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> Response:
    await service.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Admin: announcements


@router.get("/admin/announcements", response_model=List[AnnouncementResponse])
async def list_all_announcements(
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> List[AnnouncementResponse]:
    announcements = await service.list_announcements()
    return [AnnouncementResponse.model_validate(a) for a in announcements]


@router.post(
    "/admin/announcements",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    body: AnnouncementCreateRequest,
    staff: Staff = Depends(admin_gate),
    service: DiplomaService = Depends(get_diploma_service),
) -> AnnouncementResponse:
    announcement = await service.create_announcement(body.model_dump())
    return AnnouncementResponse.model_validate(announcement)
