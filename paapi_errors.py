"""Failure kinds raised by the product search pipeline.

Every failure reaches the HTTP layer as a SearchError carrying a ``kind``
and a ``status_code``; callers never have to inspect the message text.
"""
from typing import Dict, List, Optional


class SearchError(Exception):
    kind = 'search_error'
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'success': False, 'error': self.message, 'kind': self.kind}


class ConfigurationError(SearchError):
    """Missing access key, secret key or partner tag."""
    kind = 'configuration_error'
    status_code = 400


class InputError(SearchError):
    """Bad keyword / category / count from the caller."""
    kind = 'input_error'
    status_code = 400


class NetworkError(SearchError):
    kind = 'network_error'


class ProtocolError(SearchError):
    """The service answered with its own ``Errors`` list."""
    kind = 'protocol_error'

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = list(errors)
        super().__init__('; '.join(f"{e['code']}: {e['message']}" for e in self.errors))


class ResponseParseError(SearchError):
    kind = 'response_parse_error'

    def __init__(self, body_size: int, snippet: str, reason: Optional[str] = None):
        self.body_size = body_size
        self.snippet = snippet
        detail = f' ({reason})' if reason else ''
        super().__init__(f'unparseable response body of {body_size} bytes{detail}: {snippet!r}')
