"""Recovery statistics for the merchant dashboard."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from recoverhub.models.failed_payment import FailedPayment, FailedPaymentStatus
from recoverhub.models.shared import ensure_utc
from recoverhub.repositories.dunning_email_repository import DunningEmailRepository
from recoverhub.schemas.stats import RecoveryStatsResponse


class RecoveryStatsService:
    def __init__(self, db: Session):
        self.db = db

    def get_stats(self, merchant_id: UUID) -> RecoveryStatsResponse:
        recovered = FailedPaymentStatus.RECOVERED.value
        at_risk = [FailedPaymentStatus.ACTIVE.value, FailedPaymentStatus.PAUSED.value]

        totals: Any = (
            self.db.query(
                func.count(FailedPayment.id).label("total"),
                func.sum(case((FailedPayment.status == recovered, 1), else_=0)).label("recovered"),
                func.sum(
                    case((FailedPayment.status == FailedPaymentStatus.ACTIVE.value, 1), else_=0)
                ).label("active"),
                func.sum(
                    case((FailedPayment.status == FailedPaymentStatus.PAUSED.value, 1), else_=0)
                ).label("paused"),
                func.sum(
                    case((FailedPayment.status == recovered, FailedPayment.amount_cents), else_=0)
                ).label("recovered_amount"),
                func.sum(
                    case((FailedPayment.status.in_(at_risk), FailedPayment.amount_cents), else_=0)
                ).label("at_risk_amount"),
            )
            .filter(FailedPayment.merchant_id == merchant_id)
            .one()
        )

        total = int(totals.total or 0)
        total_recovered = int(totals.recovered or 0)

        recovered_cases = (
            self.db.query(FailedPayment.recovery_started_at, FailedPayment.recovered_at)
            .filter(
                FailedPayment.merchant_id == merchant_id,
                FailedPayment.status == recovered,
                FailedPayment.recovered_at.isnot(None),
            )
            .all()
        )
        durations = [
            (ensure_utc(recovered_at) - ensure_utc(started_at)).total_seconds() / 3600  # type: ignore[operator]
            for started_at, recovered_at in recovered_cases
        ]

        return RecoveryStatsResponse(
            total_failed=total,
            total_recovered=total_recovered,
            active_cases=int(totals.active or 0),
            paused_cases=int(totals.paused or 0),
            success_rate_pct=round(total_recovered / total * 100, 1) if total else 0.0,
            recovered_amount_cents=int(totals.recovered_amount or 0),
            at_risk_amount_cents=int(totals.at_risk_amount or 0),
            avg_recovery_time_hours=round(sum(durations) / len(durations), 1) if durations else None,
            emails_sent=DunningEmailRepository(self.db).count_delivered(merchant_id),
        )
