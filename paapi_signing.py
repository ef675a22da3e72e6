"""AWS Signature Version 4 for the Product Advertising API.

Only the subset needed for a single POST with an empty query string:

  canonicalize()        -> canonical headers, signed header list, payload hash
  derive_signing_key()  -> kDate -> kRegion -> kService -> kSigning
  sign()                -> string to sign, signature, Authorization header

The remote service recomputes all of this independently, so every byte
matters: header names are lower-cased and sorted, the header block keeps
its trailing blank line, and the HMAC chain passes raw digests (never hex)
from one step to the next.
"""
import datetime
import hashlib
import hmac
from dataclasses import dataclass
from typing import Dict, Mapping

ALGORITHM = 'AWS4-HMAC-SHA256'
REGION = 'us-west-2'
SERVICE = 'ProductAdvertisingAPI'
TERMINATOR = 'aws4_request'

AMZ_DATE_FORMAT = '%Y%m%dT%H%M%SZ'


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class DateContext:
    """One clock reading, formatted twice.

    ``amz_date`` goes into the X-Amz-Date header and the string to sign,
    ``date_stamp`` into the credential scope and the key derivation. Both
    must come from the same instant or the signature will not verify
    around midnight UTC.
    """
    amz_date: str
    date_stamp: str

    @classmethod
    def from_datetime(cls, t: datetime.datetime) -> 'DateContext':
        if t.tzinfo is not None:
            t = t.astimezone(datetime.timezone.utc)
        amz_date = t.strftime(AMZ_DATE_FORMAT)
        return cls(amz_date=amz_date, date_stamp=amz_date[:8])

    @classmethod
    def now(cls) -> 'DateContext':
        return cls.from_datetime(datetime.datetime.now(datetime.timezone.utc))


@dataclass(frozen=True)
class SigningRequest:
    method: str
    path: str
    headers: Mapping[str, str]
    payload: bytes
    query_string: str = ''

    def __post_init__(self):
        normalized: Dict[str, str] = {}
        for name, value in self.headers.items():
            key = name.strip().lower()
            if key in normalized:
                raise ValueError(f'duplicate header after lower-casing: {key}')
            normalized[key] = str(value).strip()
        object.__setattr__(self, 'headers', normalized)


@dataclass(frozen=True)
class CanonicalRequest:
    canonical_headers: str
    signed_headers: str
    payload_hash: str
    text: str


@dataclass(frozen=True)
class Signature:
    string_to_sign: str
    signature: str
    authorization: str
    credential_scope: str


def canonicalize(request: SigningRequest) -> CanonicalRequest:
    names = sorted(request.headers)
    canonical_headers = ''.join(f'{name}:{request.headers[name]}\n' for name in names)
    signed_headers = ';'.join(names)
    payload_hash = _sha256_hex(request.payload)
    text = '\n'.join([
        request.method,
        request.path,
        request.query_string,
        canonical_headers,
        signed_headers,
        payload_hash,
    ])
    return CanonicalRequest(canonical_headers, signed_headers, payload_hash, text)


def derive_signing_key(secret_key: str, date_stamp: str, region: str = REGION, service: str = SERVICE) -> bytes:
    k_date = _hmac(('AWS4' + secret_key).encode('utf-8'), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, TERMINATOR)


def credential_scope(date_stamp: str, region: str = REGION, service: str = SERVICE) -> str:
    return f'{date_stamp}/{region}/{service}/{TERMINATOR}'


def sign(canonical: CanonicalRequest, date_ctx: DateContext, access_key: str, signing_key: bytes,
         region: str = REGION, service: str = SERVICE) -> Signature:
    scope = credential_scope(date_ctx.date_stamp, region, service)
    string_to_sign = '\n'.join([
        ALGORITHM,
        date_ctx.amz_date,
        scope,
        _sha256_hex(canonical.text.encode('utf-8')),
    ])
    signature = hmac.new(signing_key, string_to_sign.encode('utf-8'), hashlib.sha256).hexdigest()
    authorization = (
        f'{ALGORITHM} Credential={access_key}/{scope}, '
        f'SignedHeaders={canonical.signed_headers}, Signature={signature}'
    )
    return Signature(string_to_sign, signature, authorization, scope)


def sign_request(request: SigningRequest, date_ctx: DateContext, access_key: str, secret_key: str) -> Signature:
    """Canonicalize, derive a fresh key for ``date_ctx`` and sign."""
    canonical = canonicalize(request)
    signing_key = derive_signing_key(secret_key, date_ctx.date_stamp)
    return sign(canonical, date_ctx, access_key, signing_key)
