"""Variable substitution and amount formatting for dunning emails."""

from decimal import Decimal

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "INR": "₹",
    "BRL": "R$",
    "MXN": "MX$",
    "KRW": "₩",
}

# Stripe amounts for these currencies are already in whole units.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


def format_amount(amount_cents: int, currency: str) -> str:
    """Format a minor-unit amount the way an en-US reader expects, e.g. ``$49.00``."""
    code = currency.upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        number = f"{amount_cents:,}"
    else:
        number = f"{Decimal(amount_cents) / 100:,.2f}"

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{code} {number}"
    if number.startswith("-"):
        return f"-{symbol}{number[1:]}"
    return f"{symbol}{number}"


def render_template(text: str, variables: dict[str, str]) -> str:
    """Replace each literal ``{{name}}`` token; unknown tokens stay as they are."""
    for name, value in variables.items():
        text = text.replace("{{" + name + "}}", value)
    return text


def build_template_variables(
    *,
    customer_name: str | None,
    customer_email: str | None,
    amount_cents: int,
    currency: str,
    app_url: str,
) -> dict[str, str]:
    return {
        "customer_name": customer_name or customer_email or "there",
        "amount_due": format_amount(amount_cents, currency),
        "update_link": f"{app_url.rstrip('/')}/billing/update",
    }
