import datetime

import pytest

from paapi_signing import (
    ALGORITHM,
    DateContext,
    SigningRequest,
    canonicalize,
    credential_scope,
    derive_signing_key,
    sign,
    sign_request,
)

SECRET = 'wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY'

HEADERS = {
    'X-Amz-Target': 'com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems',
    'Host': 'webservices.amazon.co.jp',
    'Content-Type': 'application/json; charset=utf-8',
    'X-Amz-Date': '20240115T123456Z',
    'Content-Encoding': 'amz-1.0',
}


def _request(headers=None, payload=b'{"Keywords":"widget"}'):
    return SigningRequest(method='POST', path='/paapi5/searchitems', headers=headers or HEADERS, payload=payload)


def test_date_context_single_reading():
    ctx = DateContext.from_datetime(datetime.datetime(2024, 1, 15, 12, 34, 56, tzinfo=datetime.timezone.utc))
    assert ctx.amz_date == '20240115T123456Z'
    assert ctx.date_stamp == '20240115'


def test_date_context_converts_to_utc():
    jst = datetime.timezone(datetime.timedelta(hours=9))
    ctx = DateContext.from_datetime(datetime.datetime(2024, 1, 16, 2, 0, 0, tzinfo=jst))
    assert ctx.amz_date == '20240115T170000Z'
    assert ctx.date_stamp == '20240115'


def test_date_context_now_shape():
    ctx = DateContext.now()
    assert len(ctx.amz_date) == 16
    assert ctx.amz_date.endswith('Z') and ctx.amz_date[8] == 'T'
    assert ctx.amz_date.startswith(ctx.date_stamp)


def test_headers_lowercased_and_trimmed():
    req = _request({'Host': '  example.com ', 'X-Amz-Date': '20240115T123456Z'})
    assert req.headers == {'host': 'example.com', 'x-amz-date': '20240115T123456Z'}


def test_duplicate_header_after_lowercasing_rejected():
    with pytest.raises(ValueError):
        _request({'Host': 'a', 'host': 'b'})


def test_canonical_headers_sorted_regardless_of_input_order():
    forward = canonicalize(_request(HEADERS))
    backward = canonicalize(_request(dict(reversed(list(HEADERS.items())))))
    assert forward == backward
    names = [line.split(':', 1)[0] for line in forward.canonical_headers.splitlines()]
    assert names == sorted(names)
    assert forward.signed_headers == 'content-encoding;content-type;host;x-amz-date;x-amz-target'


def test_canonicalize_is_idempotent():
    req = _request()
    assert canonicalize(req) == canonicalize(req)
    assert canonicalize(req).text == canonicalize(_request()).text


def test_canonical_request_keeps_blank_line_after_headers():
    canonical = canonicalize(_request())
    assert canonical.canonical_headers.endswith('x-amz-target:com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems\n')
    assert not canonical.canonical_headers.endswith('\n\n')
    # line terminator from the block plus the join separator
    assert 'SearchItems\n\ncontent-encoding;' in canonical.text
    lines = canonical.text.split('\n')
    assert lines[0] == 'POST'
    assert lines[1] == '/paapi5/searchitems'
    assert lines[2] == ''
    assert lines[-3] == ''
    assert lines[-1] == canonical.payload_hash


def test_payload_hash_is_sha256_hex():
    canonical = canonicalize(_request(payload=b''))
    assert canonical.payload_hash == 'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'


def test_derive_signing_key_known_vector():
    key = derive_signing_key(SECRET, '20120215', 'us-east-1', 'iam')
    assert key.hex() == 'f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d'


def test_derive_signing_key_deterministic_and_date_sensitive():
    a = derive_signing_key(SECRET, '20240115')
    b = derive_signing_key(SECRET, '20240115')
    c = derive_signing_key(SECRET, '20240116')
    assert isinstance(a, bytes) and len(a) == 32
    assert a == b
    assert a != c
    assert a.hex() == '951cf4bda517610848684aeb7447ba2cb7c55a3413b18179b2d586442c9e15f3'
    assert c.hex() == '099196b4565051eda3bbb1ff133b940847ac7485b3170dd3f87f037ab5c6bf6f'


def test_sign_builds_authorization_header():
    ctx = DateContext('20240115T123456Z', '20240115')
    canonical = canonicalize(_request())
    result = sign(canonical, ctx, 'AKIDEXAMPLE', derive_signing_key(SECRET, ctx.date_stamp))
    scope = credential_scope('20240115')
    assert scope == '20240115/us-west-2/ProductAdvertisingAPI/aws4_request'
    assert result.string_to_sign.split('\n')[:3] == [ALGORITHM, '20240115T123456Z', scope]
    assert len(result.signature) == 64
    assert result.authorization == (
        f'AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/{scope}, '
        f'SignedHeaders=content-encoding;content-type;host;x-amz-date;x-amz-target, '
        f'Signature={result.signature}'
    )


def test_signature_changes_with_one_payload_byte():
    ctx = DateContext('20240115T123456Z', '20240115')
    a = sign_request(_request(payload=b'{"Keywords":"widget"}'), ctx, 'AKIDEXAMPLE', SECRET)
    b = sign_request(_request(payload=b'{"Keywords":"widgeu"}'), ctx, 'AKIDEXAMPLE', SECRET)
    assert a.string_to_sign != b.string_to_sign
    assert a.signature != b.signature


def test_secret_not_in_signature_output():
    ctx = DateContext('20240115T123456Z', '20240115')
    result = sign_request(_request(), ctx, 'AKIDEXAMPLE', SECRET)
    assert SECRET not in result.authorization
    assert SECRET not in result.string_to_sign
