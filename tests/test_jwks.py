"""Tests for Auth0 access token verification."""

import base64
import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from admin_api.auth.dependencies import get_current_claims
from admin_api.auth.jwks import Auth0JWKSClient, TokenClaims
from admin_api.config import Auth0Settings
from admin_api.exceptions import AuthenticationError

DOMAIN = "ausa.us.auth0.com"
AUDIENCE = "https://api.ausa.io"
KID = "test-key-1"


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def private_pem(private_key):
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="module")
def jwks(private_key):
    numbers = private_key.public_key().public_numbers()
    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": KID,
                "use": "sig",
                "alg": "RS256",
                "n": _b64url_uint(numbers.n),
                "e": _b64url_uint(numbers.e),
            }
        ]
    }


@pytest.fixture
def jwks_requests():
    return []


@pytest.fixture
def jwks_client(jwks, jwks_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        jwks_requests.append(str(request.url))
        return httpx.Response(200, json=jwks)

    settings = Auth0Settings(domain=DOMAIN, audience=AUDIENCE)
    return Auth0JWKSClient(settings, transport=httpx.MockTransport(handler))


def _token(private_pem, kid=KID, **overrides):
    now = int(time.time())
    claims = {
        "sub": "auth0|abc",
        "aud": AUDIENCE,
        "iss": f"https://{DOMAIN}/",
        "iat": now,
        "exp": now + 600,
        "https://ausa.io/claims/email": "staff@ausa.io",
    }
    claims.update(overrides)
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})


@pytest.mark.asyncio
async def test_valid_token(jwks_client, private_pem, jwks_requests):
    claims = await jwks_client.verify_token(_token(private_pem))
    assert claims.sub == "auth0|abc"
    assert claims.email == "staff@ausa.io"
    assert jwks_requests == [f"https://{DOMAIN}/.well-known/jwks.json"]


@pytest.mark.asyncio
async def test_jwks_is_cached(jwks_client, private_pem, jwks_requests):
    await jwks_client.verify_token(_token(private_pem))
    await jwks_client.verify_token(_token(private_pem, sub="auth0|other"))
    assert len(jwks_requests) == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"aud": "https://someone-else"},
        {"iss": "https://evil.auth0.com/"},
        {"exp": int(time.time()) - 10},
    ],
)
@pytest.mark.asyncio
async def test_rejected_claims(jwks_client, private_pem, overrides):
    with pytest.raises(AuthenticationError) as exc_info:
        await jwks_client.verify_token(_token(private_pem, **overrides))
    assert exc_info.value.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_unknown_kid(jwks_client, private_pem):
    with pytest.raises(AuthenticationError):
        await jwks_client.verify_token(_token(private_pem, kid="rotated-away"))


@pytest.mark.asyncio
async def test_wrong_signing_key(jwks_client):
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    pem = other.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption()
    ).decode()
    with pytest.raises(AuthenticationError):
        await jwks_client.verify_token(_token(pem))


@pytest.mark.asyncio
async def test_garbage_token(jwks_client):
    with pytest.raises(AuthenticationError):
        await jwks_client.verify_token("not-a-jwt")


@pytest.mark.asyncio
async def test_jwks_fetch_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    client = Auth0JWKSClient(Auth0Settings(domain=DOMAIN, audience=AUDIENCE), transport=transport)
    with pytest.raises(AuthenticationError, match="signing keys"):
        await client.get_jwks()


@pytest.mark.asyncio
async def test_missing_token_and_missing_sub(jwks_client, private_pem):
    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_claims(token=None, jwks_client=jwks_client)
    assert exc_info.value.code == "MISSING_TOKEN"

    with pytest.raises(AuthenticationError) as exc_info:
        await get_current_claims(token=_token(private_pem, sub=""), jwks_client=jwks_client)
    assert exc_info.value.code == "MISSING_SUB"


def test_email_claim_fallback_order():
    ns = "https://ausa.io"
    assert TokenClaims({"email": "a@x.io", f"{ns}/email": "b@x.io"}).email == "a@x.io"
    assert TokenClaims({f"{ns}/email": "b@x.io", f"{ns}/claims/email": "c@x.io"}).email == "b@x.io"
    assert TokenClaims({f"{ns}/claims/email": "c@x.io", f"{ns}/claims/email_address": "d@x.io"}).email == "c@x.io"
    assert TokenClaims({f"{ns}/claims/email_address": "d@x.io"}).email == "d@x.io"
    assert TokenClaims({"sub": "s"}).email is None
