"""
Visitor identity and location hints from request context.

Pure functions: no I/O, no side effects.
"""

from collections.abc import Mapping
from urllib.parse import unquote

from postengine.exceptions import MissingIdentityError

# Geolocation headers attached by the hosting edge, most specific first
CITY_HEADER = "x-vercel-ip-city"
REGION_HEADER = "x-vercel-ip-country-region"
COUNTRY_HEADER = "x-vercel-ip-country"


def resolve_anonymous_token(cookies: Mapping[str, str], cookie_name: str) -> str:
    """
    Extract the anonymous visitor token from request cookies.

    A missing token is a client error. The token is never inferred or
    generated here, since unmetered generation would bypass credits.

    Raises:
        MissingIdentityError: Cookie absent or blank
    """
    token = (cookies.get(cookie_name) or "").strip()
    if not token:
        raise MissingIdentityError(cookie_name)
    return token


def resolve_location(headers: Mapping[str, str]) -> str | None:
    """
    Build a coarse "city, region, country" string from edge headers.

    Returns None when no geolocation header is present.
    """
    parts = []
    for header in (CITY_HEADER, REGION_HEADER, COUNTRY_HEADER):
        value = unquote(headers.get(header) or "").strip()
        if value:
            parts.append(value)
    return ", ".join(parts) or None
