# src/storefront/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def email_rate_limit() -> str:
    return get_settings().email_rate_limit
