"""Default dunning sequence seeded for every new merchant.

Placeholders: ``{{customer_name}}``, ``{{amount_due}}``, ``{{update_link}}``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from recoverhub.models.dunning_template import DunningTemplate


def _layout(title: str, accent: str, content: str, footer: str, button: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;background:#f9fafb;font-family:-apple-system,'Segoe UI',Roboto,sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0">
    <tr><td align="center" style="padding:40px 16px;">
      <table width="600" cellpadding="0" cellspacing="0" style="background:#fff;border-radius:8px;">
        <tr><td style="background:{accent};padding:28px 40px;">
          <h1 style="color:#fff;margin:0;font-size:20px;">{title}</h1>
        </td></tr>
        <tr><td style="padding:40px;font-size:15px;color:#374151;line-height:1.6;">
          <p style="margin-top:0;color:#111;">Hi {{{{customer_name}}}},</p>
          {content}
          <a href="{{{{update_link}}}}" style="display:inline-block;background:{accent};color:#fff;padding:12px 28px;border-radius:6px;text-decoration:none;font-weight:600;margin:16px 0;">{button}</a>
        </td></tr>
        <tr><td style="background:#f3f4f6;padding:20px 40px;text-align:center;font-size:12px;color:#9ca3af;">
          {footer}
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


DEFAULT_TEMPLATES: list[dict[str, object]] = [
    {
        "name": "Soft Reminder",
        "sequence_order": 1,
        "delay_days": 1,
        "subject": "Action required: Update your payment details",
        "body_html": _layout(
            title="Payment update required",
            accent="#4f46e5",
            content=(
                "<p>We couldn't process your recent payment of <strong>{{amount_due}}</strong>. "
                "This usually means a card expired or the bank declined the charge.</p>"
                "<p>Your account is still active. Please update your payment details "
                "when you have a moment.</p>"
            ),
            footer="You're receiving this because a payment couldn't be processed.",
            button="Update payment details",
        ),
        "body_text": (
            "Hi {{customer_name}},\n\n"
            "We couldn't process your recent payment of {{amount_due}}.\n\n"
            "Update your payment details: {{update_link}}\n\n"
            "Your account is still active. Reply to this email if you have questions."
        ),
    },
    {
        "name": "Urgent Notice",
        "sequence_order": 2,
        "delay_days": 5,
        "subject": "Urgent: Your payment of {{amount_due}} is still outstanding",
        "body_html": _layout(
            title="Payment outstanding",
            accent="#dc2626",
            content=(
                "<p><strong>Your payment of {{amount_due}} is 5 days overdue.</strong></p>"
                "<p>To keep your subscription active and avoid an interruption, "
                "please update your payment information now.</p>"
            ),
            footer="Your subscription may be suspended if payment is not received.",
            button="Update payment now",
        ),
        "body_text": (
            "Hi {{customer_name}},\n\n"
            "URGENT: Your payment of {{amount_due}} is 5 days overdue.\n\n"
            "Update your payment to avoid an interruption: {{update_link}}\n\n"
            "Need help? Reply to this email."
        ),
    },
    {
        "name": "Final Warning",
        "sequence_order": 3,
        "delay_days": 12,
        "subject": "Final notice: Subscription cancellation in 48 hours",
        "body_html": _layout(
            title="Final notice",
            accent="#7c3aed",
            content=(
                "<p>Your outstanding payment of <strong>{{amount_due}}</strong> has not been "
                "received and your subscription will be <strong>cancelled in 48 hours</strong>.</p>"
                "<p>Update your payment details now to keep your data and access.</p>"
            ),
            footer="After cancellation, your data is retained for 30 days.",
            button="Keep my subscription",
        ),
        "body_text": (
            "Hi {{customer_name}},\n\n"
            "FINAL NOTICE: Your subscription will be cancelled in 48 hours.\n\n"
            "Outstanding payment: {{amount_due}}\n\n"
            "Update your payment to prevent cancellation: {{update_link}}\n\n"
            "Data is retained for 30 days after cancellation."
        ),
    },
]


def seed_default_templates(db: Session, merchant_id: UUID) -> list[DunningTemplate]:
    """Add the default templates for a merchant (flushes; the caller commits)."""
    templates = [DunningTemplate(merchant_id=merchant_id, **data) for data in DEFAULT_TEMPLATES]
    db.add_all(templates)
    db.flush()
    return templates
