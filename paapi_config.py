"""Credentials and inbound search parameters.

Credentials come from the environment once, at the edge, and are passed
down explicitly as an immutable SearchCredentials value.
"""
import math
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from paapi_errors import ConfigurationError, InputError

DEFAULT_CATEGORY = 'All'
DEFAULT_COUNT = 10
MAX_COUNT = 10
DEFAULT_TIMEOUT = 15.0

ENV_ACCESS_KEY = 'PAAPI_ACCESS_KEY'
ENV_SECRET_KEY = 'PAAPI_SECRET_KEY'
ENV_PARTNER_TAG = 'PAAPI_PARTNER_TAG'
ENV_TIMEOUT = 'PAAPI_TIMEOUT'


@dataclass(frozen=True)
class SearchCredentials:
    access_key: str
    # keep the secret out of repr() so it never ends up in logs or tracebacks
    secret_key: str = field(repr=False)
    partner_tag: str

    def validate(self) -> 'SearchCredentials':
        for name in ('access_key', 'secret_key', 'partner_tag'):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f'missing credential: {name}')
        return self


@dataclass(frozen=True)
class SearchQuery:
    keyword: str
    category: str = DEFAULT_CATEGORY
    count: int = DEFAULT_COUNT


def load_credentials_from_env(environ: Optional[Mapping[str, str]] = None) -> SearchCredentials:
    env = os.environ if environ is None else environ
    return SearchCredentials(
        access_key=(env.get(ENV_ACCESS_KEY) or '').strip(),
        secret_key=(env.get(ENV_SECRET_KEY) or '').strip(),
        partner_tag=(env.get(ENV_PARTNER_TAG) or '').strip(),
    )


def load_timeout_from_env(environ: Optional[Mapping[str, str]] = None) -> float:
    env = os.environ if environ is None else environ
    raw = env.get(ENV_TIMEOUT)
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(f'{ENV_TIMEOUT} must be a number of seconds')
    if not math.isfinite(timeout) or timeout <= 0:
        raise ConfigurationError(f'{ENV_TIMEOUT} must be a positive, finite number of seconds')
    return timeout


def _parse_count(raw: Any) -> int:
    if raw is None or raw == '':
        return DEFAULT_COUNT
    # bool is an int subclass; True is not a count
    if isinstance(raw, bool):
        raise InputError('count must be a positive integer')
    if isinstance(raw, int):
        count = raw
    elif isinstance(raw, str) and raw.strip().isascii():
        try:
            count = int(raw.strip())
        except ValueError:
            raise InputError('count must be a positive integer')
    else:
        raise InputError('count must be a positive integer')
    if count < 1:
        raise InputError('count must be a positive integer')
    return min(count, MAX_COUNT)


def parse_search_query(params: Mapping[str, Any]) -> SearchQuery:
    """Validate raw request parameters.

    ``keyword`` is required. ``category`` falls back to the catalog-wide
    index. ``count`` (or ``resultCount``) must be a positive integer and is
    clamped to the per-page maximum of 10.
    """
    keyword = params.get('keyword')
    if not isinstance(keyword, str) or not keyword.strip():
        raise InputError('keyword parameter required')

    category = params.get('category')
    if category is None or (isinstance(category, str) and not category.strip()):
        category = DEFAULT_CATEGORY
    elif not isinstance(category, str):
        raise InputError('category must be a string')

    raw_count = params.get('count')
    if raw_count is None:
        raw_count = params.get('resultCount')

    return SearchQuery(keyword=keyword.strip(), category=category.strip(), count=_parse_count(raw_count))
