import os
from datetime import datetime

import pytz
from sqlalchemy.orm import class_mapper

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Kathmandu")


def local_now() -> datetime:
    """Timezone-aware 'now' in the configured business timezone."""
    return datetime.now(pytz.timezone(APP_TIMEZONE))


def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        # Convert datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        # Convert Decimal objects to strings so no precision is lost in the audit trail
        elif hasattr(value, 'normalize') and hasattr(value, 'from_float'):
            value = str(value)
        # Convert enum types to strings
        elif hasattr(value, 'name') and not isinstance(value, str):
            value = value.name
        result[c.key] = value
    return result


__all__ = ['APP_TIMEZONE', 'local_now', 'sqlalchemy_to_dict']
