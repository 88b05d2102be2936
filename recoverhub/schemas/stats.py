"""Recovery statistics schemas."""

from pydantic import BaseModel


class RecoveryStatsResponse(BaseModel):
    """Recovery totals for a merchant."""

    total_failed: int
    total_recovered: int
    active_cases: int
    paused_cases: int
    success_rate_pct: float
    recovered_amount_cents: int
    at_risk_amount_cents: int
    avg_recovery_time_hours: float | None = None
    emails_sent: int
