"""Amazon Product Advertising API v5 SearchItems client with AWS SigV4 signing.

Usage:
  creds = load_credentials_from_env()
  result = search_items(SearchQuery('widget'), creds)

One request shape against one endpoint (amazon.co.jp). Every call is
one-shot: no retry, no cache, no rate limiting. Transport and protocol
failures surface as SearchError subclasses from paapi_errors.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import requests

from paapi_config import DEFAULT_TIMEOUT, SearchCredentials, SearchQuery
from item_projection import project_search_result
from paapi_errors import NetworkError, ProtocolError, ResponseParseError
from paapi_signing import DateContext, Signature, SigningRequest, sign_request

logger = logging.getLogger(__name__)

HOST = 'webservices.amazon.co.jp'
PATH = '/paapi5/searchitems'
ENDPOINT = f'https://{HOST}{PATH}'
MARKETPLACE = 'www.amazon.co.jp'
PARTNER_TYPE = 'Associates'
TARGET = 'com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems'
CONTENT_TYPE = 'application/json; charset=utf-8'
CONTENT_ENCODING = 'amz-1.0'

RESOURCES = [
    'Images.Primary.Medium',
    'ItemInfo.Title',
    'ItemInfo.ByLineInfo',
    'Offers.Listings.Price',
    'Offers.Listings.Availability.Message',
    'CustomerReviews.Count',
    'CustomerReviews.StarRating',
]

SNIPPET_LENGTH = 200


@dataclass(frozen=True)
class PreparedRequest:
    url: str
    headers: Dict[str, str]
    body: bytes
    signature: Signature


@dataclass(frozen=True)
class SearchSuccess:
    raw: Dict[str, Any]


@dataclass(frozen=True)
class SearchFault:
    errors: List[Dict[str, str]]


RemoteResult = Union[SearchSuccess, SearchFault]


def build_search_payload(query: SearchQuery, partner_tag: str) -> Dict[str, Any]:
    return {
        'Keywords': query.keyword,
        'SearchIndex': query.category,
        'Resources': list(RESOURCES),
        'PartnerTag': partner_tag,
        'PartnerType': PARTNER_TYPE,
        'Marketplace': MARKETPLACE,
        'ItemCount': query.count,
    }


def encode_payload(payload: Dict[str, Any]) -> bytes:
    # these exact bytes are both hashed for the signature and sent
    return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def build_signed_request(query: SearchQuery, credentials: SearchCredentials,
                         date_ctx: Optional[DateContext] = None) -> PreparedRequest:
    if date_ctx is None:
        date_ctx = DateContext.now()
    body = encode_payload(build_search_payload(query, credentials.partner_tag))

    headers = {
        'Content-Encoding': CONTENT_ENCODING,
        'Content-Type': CONTENT_TYPE,
        'Host': HOST,
        'X-Amz-Date': date_ctx.amz_date,
        'X-Amz-Target': TARGET,
    }
    request = SigningRequest(method='POST', path=PATH, headers=headers, payload=body)
    signature = sign_request(request, date_ctx, credentials.access_key, credentials.secret_key)

    sent = dict(headers)
    sent['Authorization'] = signature.authorization
    return PreparedRequest(url=ENDPOINT, headers=sent, body=body, signature=signature)


def _snippet(body: bytes) -> str:
    return body[:SNIPPET_LENGTH].decode('utf-8', errors='replace')


def _error_list(errors: Any) -> List[Dict[str, str]]:
    out = []
    for err in errors:
        if isinstance(err, dict):
            out.append({'code': str(err.get('Code') or 'Unknown'), 'message': str(err.get('Message') or '')})
        else:
            out.append({'code': 'Unknown', 'message': str(err)})
    return out


def classify_response(status_code: int, body: bytes) -> RemoteResult:
    """Turn a raw HTTP response into SearchSuccess or SearchFault.

    PA-API reports failures as an ``Errors`` list in the JSON body, which
    may arrive with HTTP 200. A body that is not a JSON object raises
    ResponseParseError.
    """
    try:
        data = json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise ResponseParseError(len(body), _snippet(body), reason=type(e).__name__)
    if not isinstance(data, dict):
        raise ResponseParseError(len(body), _snippet(body), reason='not a JSON object')

    errors = data.get('Errors')
    if isinstance(errors, list) and errors:
        return SearchFault(_error_list(errors))
    if not 200 <= status_code < 300:
        return SearchFault([{'code': f'HTTP{status_code}', 'message': _snippet(body)}])
    return SearchSuccess(data)


def call_search_items(prepared: PreparedRequest, timeout: float = DEFAULT_TIMEOUT,
                      session: Optional[requests.Session] = None) -> RemoteResult:
    http = session if session is not None else requests
    try:
        resp = http.post(prepared.url, headers=prepared.headers, data=prepared.body, timeout=timeout)
    except requests.Timeout as e:
        logger.error('PA-API request timed out after %ss', timeout)
        raise NetworkError(f'request to {HOST} timed out after {timeout}s') from e
    except requests.RequestException as e:
        logger.error('PA-API transport failure: %s', type(e).__name__)
        raise NetworkError(f'request to {HOST} failed: {type(e).__name__}') from e

    logger.info('PA-API responded %s (%d bytes)', resp.status_code, len(resp.content))
    return classify_response(resp.status_code, resp.content)


def search_items(query: SearchQuery, credentials: SearchCredentials, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> Dict[str, Any]:
    """Search by keyword; returns ``{'totalResults': int, 'items': [...]}``."""
    credentials.validate()
    prepared = build_signed_request(query, credentials)
    logger.info('searching category=%s count=%d keyword_len=%d', query.category, query.count, len(query.keyword))

    result = call_search_items(prepared, timeout=timeout, session=session)
    if isinstance(result, SearchFault):
        err = ProtocolError(result.errors)
        logger.warning('PA-API returned errors: %s', err.message)
        raise err
    return project_search_result(result.raw)
