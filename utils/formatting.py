import re
from decimal import Decimal, InvalidOperation

_UNSAFE = re.compile(r'[^a-zA-Z0-9_-]')


def safe_filename(name):
    """Replace everything but letters, digits, '_' and '-' with '_'."""
    return _UNSAFE.sub('_', str(name))


def humanize_key(key):
    key = str(key).replace('_', ' ')
    return key[:1].upper() + key[1:]


def format_value(value):
    """Numbers get two decimals and thousands separators; everything else is str()."""
    if isinstance(value, bool):
        return str(value)
    try:
        if isinstance(value, str):
            value = value.strip()
            if not re.fullmatch(r'[-+]?\d+(\.\d+)?', value):
                return value
        amount = Decimal(str(value))
        return f"{amount.quantize(Decimal('1.00')):,}"
    except (ValueError, InvalidOperation, TypeError):
        return str(value)
