"""Currency validation and formatting for invoice amounts held in minor units."""

# ISO 4217 currency codes accepted for firm billing
supported_currencies = [
    "USD",  # United States Dollar
    "EUR",  # Euro
    "GBP",  # British Pound Sterling
    "CAD",  # Canadian Dollar
    "AUD",  # Australian Dollar
    "NZD",  # New Zealand Dollar
    "JPY",  # Japanese Yen
    "INR",  # Indian Rupee
    "CHF",  # Swiss Franc
    "SGD",  # Singapore Dollar
]

# Currencies whose smallest unit is the whole currency
zero_decimal_currencies = ["JPY"]

currency_symbols = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "JPY": "¥",
    "INR": "₹",
    "CHF": "CHF",
    "SGD": "S$",
}


def validate_currency(currency: str) -> bool:
    """
    Validate if a currency code is supported.

    Example:
        >>> validate_currency("usd")
        True
        >>> validate_currency("XYZ")
        False
    """
    if not currency:
        return False
    return currency.upper() in supported_currencies


def format_amount_for_currency(amount: int, currency: str) -> str:
    """
    Format an amount in minor units for display on invoice lines.

    Uses integer division so no float rounding creeps into displayed cents.

    Examples:
        >>> format_amount_for_currency(4900, "USD")
        '$49.00'
        >>> format_amount_for_currency(1000, "JPY")
        '¥1,000'
    """
    currency_upper = currency.upper()
    symbol = currency_symbols.get(currency_upper, currency_upper + " ")

    if currency_upper in zero_decimal_currencies:
        return f"{symbol}{amount:,}"

    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), 100)
    return f"{sign}{symbol}{major:,}.{minor:02d}"
