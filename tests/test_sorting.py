"""Tests for list ordering."""

import pytest

from recoverhub.core.sorting import parse_order_by

FIELDS = {"created_at", "amount_cents"}


@pytest.mark.parametrize(
    ("order_by", "expected"),
    [
        (None, ("created_at", "desc")),
        ("", ("created_at", "desc")),
        ("amount_cents", ("amount_cents", "asc")),
        ("amount_cents:desc", ("amount_cents", "desc")),
        ("amount_cents:sideways", ("amount_cents", "desc")),
        ("customer_email:asc", ("created_at", "desc")),
        ("id:asc", ("created_at", "desc")),
    ],
)
def test_parse_order_by(order_by, expected):
    assert parse_order_by(order_by, FIELDS) == expected


def test_custom_default():
    assert parse_order_by(None, FIELDS, default=("amount_cents", "asc")) == ("amount_cents", "asc")
