"""
Audit month handling - every audit is keyed by the first day of its month
"""
from datetime import date, datetime

from clinic_audit.errors import ValidationError


def normalize_month(value):
    """
    Normalize an audit month to the first calendar day.

    Args:
        value: 'YYYY-MM', 'YYYY-MM-DD', date or datetime

    Returns:
        datetime.date: first day of that month
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, 1)
    if isinstance(value, date):
        return value.replace(day=1)
    if isinstance(value, str):
        text = value.strip()
        for fmt in ('%Y-%m', '%Y-%m-%d'):
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return date(parsed.year, parsed.month, 1)
    raise ValidationError('Invalid month format. Use YYYY-MM')


def format_month(value):
    """date -> 'YYYY-MM'"""
    return value.strftime('%Y-%m') if value else None
