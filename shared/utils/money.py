from decimal import Decimal

CURRENCY_SYMBOLS = {"ZAR": "R", "USD": "$", "EUR": "€", "GBP": "£"}


def format_cents(amount_cents: int | None, currency: str = "ZAR") -> str:
    """200000 -> 'R 2,000.00'"""
    amount = Decimal(amount_cents or 0) / 100
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{symbol} {amount:,.2f}"
