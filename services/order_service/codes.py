"""
Human-readable order and customer labels.

Neither code is a key: order codes are only collision-improbable
(36**4 suffixes per day, no uniqueness check) and customer codes are a weak
fingerprint of the e-mail address. The order's UUID stays the durable id.
"""
import secrets
import string
from datetime import date

BASE36_ALPHABET = string.digits + string.ascii_uppercase
_HASH_PRIME = 997


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    number = abs(number)
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return sign + "".join(reversed(digits))


def generate_order_code(today: date | None = None) -> str:
    """Return ``YYYYMMDD-XXXX`` with a random 4-character base-36 suffix."""
    today = today or date.today()
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(4))
    return f"{today:%Y%m%d}-{suffix}"


def generate_customer_code(name: str | None, email: str | None) -> str | None:
    stripped = (name or "").strip()
    if not stripped or not email:
        return None
    first_letter = stripped[:1].upper()
    char_sum = sum(ord(char) for char in email)
    hash_part = to_base36(char_sum * _HASH_PRIME)[-4:].upper()
    return f"{first_letter}-{hash_part}"
