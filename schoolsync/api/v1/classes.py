"""Class and section endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.database import get_db
from schoolsync.schemas.common import APIResponse, PaginationMeta
from schoolsync.schemas.school_class import (
    SchoolClassCreate,
    SchoolClassResponse,
    SchoolClassUpdate,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
)
from schoolsync.services.class_service import get_class_service
from schoolsync.utils.permissions import Permission, require_permission

router = APIRouter()


@router.get("", response_model=APIResponse[list[SchoolClassResponse]])
@require_permission(Permission.VIEW_CLASSES)
async def list_classes(
    is_active: bool | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    classes, total = await get_class_service().get_classes(
        db, is_active=is_active, search=search, page=page, page_size=page_size
    )
    return APIResponse(
        data=[SchoolClassResponse.model_validate(c) for c in classes],
        pagination=PaginationMeta.build(page, page_size, total),
    )


# Sections routes come before /{class_id} so "sections" is not parsed as an id

@router.get("/sections", response_model=APIResponse[list[SectionResponse]])
@require_permission(Permission.VIEW_CLASSES)
async def list_sections(
    class_id: uuid.UUID | None = None,
    academic_year_id: uuid.UUID | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List sections with their enrolment and free seats."""
    service = get_class_service()
    sections, total = await service.get_sections(
        db, class_id=class_id, academic_year_id=academic_year_id, page=page, page_size=page_size
    )
    return APIResponse(
        data=[await service.to_response(db, s) for s in sections],
        pagination=PaginationMeta.build(page, page_size, total),
    )


@router.get("/sections/{section_id}", response_model=APIResponse[SectionResponse])
@require_permission(Permission.VIEW_CLASSES)
async def get_section(section_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    service = get_class_service()
    section = await service.get_section(db, section_id)
    return APIResponse(data=await service.to_response(db, section))


@router.post("/sections", response_model=APIResponse[SectionResponse], status_code=201)
@require_permission(Permission.MANAGE_CLASSES)
async def create_section(data: SectionCreate, db: AsyncSession = Depends(get_db)):
    service = get_class_service()
    section = await service.create_section(db, data)
    await db.commit()
    return APIResponse(
        data=await service.to_response(db, section),
        message="Section created successfully",
    )


@router.put("/sections/{section_id}", response_model=APIResponse[SectionResponse])
@require_permission(Permission.MANAGE_CLASSES)
async def update_section(
    section_id: uuid.UUID,
    data: SectionUpdate,
    db: AsyncSession = Depends(get_db),
):
    service = get_class_service()
    section = await service.update_section(db, section_id, data)
    await db.commit()
    return APIResponse(
        data=await service.to_response(db, section),
        message="Section updated successfully",
    )


@router.delete("/sections/{section_id}")
@require_permission(Permission.MANAGE_CLASSES)
async def delete_section(
    section_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    await get_class_service().delete_section(db, section_id)
    await db.commit()
    return APIResponse(message="Section deleted successfully")


@router.get("/{class_id}", response_model=APIResponse[SchoolClassResponse])
@require_permission(Permission.VIEW_CLASSES)
async def get_class(class_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    school_class = await get_class_service().get_class(db, class_id)
    return APIResponse(data=SchoolClassResponse.model_validate(school_class))


@router.post("", response_model=APIResponse[SchoolClassResponse], status_code=201)
@require_permission(Permission.MANAGE_CLASSES)
async def create_class(data: SchoolClassCreate, db: AsyncSession = Depends(get_db)):
    school_class = await get_class_service().create_class(db, data)
    await db.commit()
    return APIResponse(
        data=SchoolClassResponse.model_validate(school_class),
        message="Class created successfully",
    )


@router.put("/{class_id}", response_model=APIResponse[SchoolClassResponse])
@require_permission(Permission.MANAGE_CLASSES)
async def update_class(
    class_id: uuid.UUID,
    data: SchoolClassUpdate,
    db: AsyncSession = Depends(get_db),
):
    school_class = await get_class_service().update_class(db, class_id, data)
    await db.commit()
    return APIResponse(
        data=SchoolClassResponse.model_validate(school_class),
        message="Class updated successfully",
    )


@router.delete("/{class_id}")
@require_permission(Permission.MANAGE_CLASSES)
async def delete_class(
    class_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> APIResponse:
    """Delete a class. Refused while students are enrolled."""
    await get_class_service().delete_class(db, class_id)
    await db.commit()
    return APIResponse(message="Class deleted successfully")
