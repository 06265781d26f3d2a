"""Human-readable document numbers for batches, expenses and income."""

import secrets
import string
import time

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def _random_base36(length: int) -> str:
    return ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def _timestamped_number(prefix: str, suffix_length: int) -> str:
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{_random_base36(suffix_length)}"


def generate_batch_number() -> str:
    """BATCH-<unixtime_ms>-<4 base36 chars>"""
    return _timestamped_number("BATCH", 4)


def generate_expense_number() -> str:
    """EXP-<unixtime_ms>-<6 base36 chars>"""
    return _timestamped_number("EXP", 6)


def generate_income_number() -> str:
    """INC-<unixtime_ms>-<6 base36 chars>"""
    return _timestamped_number("INC", 6)


def sequential_batch_number(code: str, sequence: int) -> str:
    return f"{code.upper()}-{sequence:03d}"
