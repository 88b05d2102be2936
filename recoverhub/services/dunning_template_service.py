"""Merchant-managed dunning templates."""

from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.repositories.dunning_template_repository import DunningTemplateRepository
from recoverhub.schemas.dunning_template import DunningTemplateCreate, DunningTemplateUpdate
from recoverhub.services.errors import TemplateNotFoundError, TemplateSequenceConflictError


class DunningTemplateService:
    """Create and edit templates, keeping active sequence orders unique per merchant."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DunningTemplateRepository(db)

    def get(self, template_id: UUID, merchant_id: UUID) -> DunningTemplate:
        template = self.repo.get_by_id(template_id, merchant_id)
        if template is None:
            raise TemplateNotFoundError("Dunning template not found")
        return template

    def create(self, data: DunningTemplateCreate, merchant_id: UUID) -> DunningTemplate:
        if data.is_active and self.repo.sequence_order_taken(merchant_id, data.sequence_order):
            raise TemplateSequenceConflictError(
                f"An active template already uses sequence order {data.sequence_order}"
            )
        return self.repo.create(data, merchant_id)

    def update(
        self,
        template_id: UUID,
        data: DunningTemplateUpdate,
        merchant_id: UUID,
    ) -> DunningTemplate:
        template = self.get(template_id, merchant_id)

        sequence_order = (
            data.sequence_order if data.sequence_order is not None else int(template.sequence_order)
        )
        is_active = data.is_active if data.is_active is not None else bool(template.is_active)
        if is_active and self.repo.sequence_order_taken(
            merchant_id, sequence_order, exclude_id=template_id
        ):
            raise TemplateSequenceConflictError(
                f"An active template already uses sequence order {sequence_order}"
            )

        updated = self.repo.update(template_id, data, merchant_id)
        if updated is None:
            raise TemplateNotFoundError("Dunning template not found")
        return updated
