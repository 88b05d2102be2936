"""DunningTemplate repository for data access."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.dunning_template import DunningTemplate
from recoverhub.schemas.dunning_template import DunningTemplateCreate, DunningTemplateUpdate


class DunningTemplateRepository:
    """Repository for DunningTemplate model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, merchant_id: UUID, active_only: bool = False) -> list[DunningTemplate]:
        """Get a merchant's templates in sequence order."""
        query = self.db.query(DunningTemplate).filter(DunningTemplate.merchant_id == merchant_id)
        if active_only:
            query = query.filter(DunningTemplate.is_active.is_(True))
        return query.order_by(DunningTemplate.sequence_order, DunningTemplate.created_at).all()

    def get_by_id(
        self,
        template_id: UUID,
        merchant_id: UUID | None = None,
    ) -> DunningTemplate | None:
        query = self.db.query(DunningTemplate).filter(DunningTemplate.id == template_id)
        if merchant_id is not None:
            query = query.filter(DunningTemplate.merchant_id == merchant_id)
        return query.first()

    def get_next_active(self, merchant_id: UUID, after_sequence_order: int) -> DunningTemplate | None:
        """Get the active template with the next-higher sequence order."""
        return (
            self.db.query(DunningTemplate)
            .filter(
                DunningTemplate.merchant_id == merchant_id,
                DunningTemplate.is_active.is_(True),
                DunningTemplate.sequence_order > after_sequence_order,
            )
            .order_by(DunningTemplate.sequence_order)
            .first()
        )

    def sequence_order_taken(
        self,
        merchant_id: UUID,
        sequence_order: int,
        exclude_id: UUID | None = None,
    ) -> bool:
        """Return True if another active template already uses ``sequence_order``."""
        query = self.db.query(DunningTemplate.id).filter(
            DunningTemplate.merchant_id == merchant_id,
            DunningTemplate.is_active.is_(True),
            DunningTemplate.sequence_order == sequence_order,
        )
        if exclude_id is not None:
            query = query.filter(DunningTemplate.id != exclude_id)
        return query.first() is not None

    def create(self, data: DunningTemplateCreate, merchant_id: UUID) -> DunningTemplate:
        template = DunningTemplate(**data.model_dump(), merchant_id=merchant_id)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def update(
        self,
        template_id: UUID,
        data: DunningTemplateUpdate,
        merchant_id: UUID,
    ) -> DunningTemplate | None:
        template = self.get_by_id(template_id, merchant_id)
        if not template:
            return None

        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(template, key, value)

        self.db.commit()
        self.db.refresh(template)
        return template
