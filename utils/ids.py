"""
Identifiers and Timestamps
"""

import secrets
import string
import uuid
from datetime import datetime, timezone

_ALPHABET = string.ascii_lowercase + string.digits


def create_id(prefix):
    """Short prefixed id like 'sec_k3j9x0ab'."""
    suffix = ''.join(secrets.choice(_ALPHABET) for _ in range(8))
    return f"{prefix}_{suffix}"


def new_uuid():
    return str(uuid.uuid4())


def create_order_number(count):
    """Order number for the next order given how many exist (ORD-0001, ...)."""
    return f"ORD-{count + 1:04d}"


def now_iso():
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"
