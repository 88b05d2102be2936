"""DunningTemplate API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from recoverhub.core.auth import get_current_merchant
from recoverhub.core.database import get_db
from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.repositories.dunning_template_repository import DunningTemplateRepository
from recoverhub.schemas.dunning_template import (
    DunningTemplateCreate,
    DunningTemplateResponse,
    DunningTemplateUpdate,
)
from recoverhub.services.dunning_template_service import DunningTemplateService
from recoverhub.services.errors import RecoveryError

router = APIRouter()


@router.post(
    "/",
    response_model=DunningTemplateResponse,
    status_code=201,
    summary="Create dunning template",
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "An active template already uses this sequence order"},
        422: {"description": "Validation error"},
    },
)
async def create_dunning_template(
    data: DunningTemplateCreate,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> DunningTemplate:
    """Create a new dunning template."""
    try:
        return DunningTemplateService(db).create(data, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None


@router.get(
    "/",
    response_model=list[DunningTemplateResponse],
    summary="List dunning templates",
    responses={401: {"description": "Unauthorized"}},
)
async def list_dunning_templates(
    active_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> list[DunningTemplate]:
    """List the merchant's dunning templates in sequence order."""
    return DunningTemplateRepository(db).get_all(merchant_id, active_only=active_only)


@router.get(
    "/{template_id}",
    response_model=DunningTemplateResponse,
    summary="Get dunning template",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Dunning template not found"},
    },
)
async def get_dunning_template(
    template_id: UUID,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> DunningTemplate:
    """Get a dunning template by ID."""
    try:
        return DunningTemplateService(db).get(template_id, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None


@router.put(
    "/{template_id}",
    response_model=DunningTemplateResponse,
    summary="Update dunning template",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Dunning template not found"},
        409: {"description": "An active template already uses this sequence order"},
        422: {"description": "Validation error"},
    },
)
async def update_dunning_template(
    template_id: UUID,
    data: DunningTemplateUpdate,
    db: Session = Depends(get_db),
    merchant_id: UUID = Depends(get_current_merchant),
) -> DunningTemplate:
    """Update a dunning template."""
    try:
        return DunningTemplateService(db).update(template_id, data, merchant_id)
    except RecoveryError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from None
