from datetime import datetime
from babel.numbers import format_currency as babel_format_currency
from babel.dates import format_datetime as babel_format_datetime

def format_currency(value: float, currency: str = 'USD', locale_str: str = 'en_US') -> str:
    return babel_format_currency(value or 0, currency, locale=locale_str)

def format_order_date(date: datetime, locale_str: str = 'en_US') -> str:
    if date is None:
        return ""
    return babel_format_datetime(date, "MMM d, yyyy h:mm a", locale=locale_str)
