"""Ordering for list endpoints.

List endpoints accept ``order_by=field[:asc|desc]``. Only whitelisted columns
are sortable; anything else falls back to the endpoint's default order.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from recoverhub.core.database import Base


def parse_order_by(
    order_by: str | None,
    allowed_fields: Iterable[str],
    default: tuple[str, str] = ("created_at", "desc"),
) -> tuple[str, str]:
    """Split ``order_by`` into a (field, direction) pair.

    Unknown fields give the default pair; an unknown direction keeps the field
    with the default direction.
    """
    if not order_by:
        return default

    field, _, direction = order_by.partition(":")
    if field not in set(allowed_fields):
        return default
    if direction not in ("asc", "desc"):
        direction = "asc" if not direction else default[1]
    return field, direction


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    allowed_fields: Iterable[str],
    default: tuple[str, str] = ("created_at", "desc"),
) -> Query:  # type: ignore[type-arg]
    """Order ``query`` by a whitelisted column of ``model``, id as tie-breaker."""
    field, direction = parse_order_by(order_by, allowed_fields, default)
    order_func = asc if direction == "asc" else desc
    return query.order_by(order_func(getattr(model, field)), order_func(model.id))
