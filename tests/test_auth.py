import time
from unittest import mock

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from marketplace.utils.auth import TokenVerifier, bearer_token
from marketplace.utils.cache import jwks_cache
from marketplace.utils.exceptions import AuthenticationError, ConfigurationError


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def test_landlord_lists_own_properties(client, token):
    response = client.get("/api/landlords/landlord-1/properties",
                          headers=auth_header(token("landlord-1", "landlord")))

    assert response.status_code == 200
    assert [p["id"] for p in response.get_json()] == [2]


def test_role_claim_is_case_insensitive(client, token):
    response = client.get("/api/landlords/landlord-1/properties",
                          headers=auth_header(token("landlord-1", "Landlord")))
    assert response.status_code == 200


def test_missing_or_malformed_header_is_401(client):
    assert client.get("/api/landlords/landlord-1/properties").status_code == 401
    response = client.get("/api/landlords/landlord-1/properties", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_bad_signature_is_401(client, token):
    forged = token("landlord-1", "landlord", secret="someone-else")
    response = client.get("/api/landlords/landlord-1/properties", headers=auth_header(forged))
    assert response.status_code == 401


def test_expired_token_is_401(client, token):
    expired = token("landlord-1", "landlord", exp=int(time.time()) - 60)
    response = client.get("/api/landlords/landlord-1/properties", headers=auth_header(expired))
    assert response.status_code == 401


def test_missing_role_is_403(client, token):
    response = client.get("/api/landlords/landlord-1/properties", headers=auth_header(token("landlord-1")))
    assert response.status_code == 403


def test_wrong_role_is_403(client, token):
    response = client.get("/api/landlords/landlord-1/properties",
                          headers=auth_header(token("landlord-1", "tenant")))
    assert response.status_code == 403


def test_other_landlords_properties_are_forbidden(client, token):
    response = client.get("/api/landlords/landlord-1/properties",
                          headers=auth_header(token("landlord-2", "landlord")))
    assert response.status_code == 403


def test_unknown_landlord_is_404(client, token):
    response = client.get("/api/landlords/ghost/properties", headers=auth_header(token("ghost", "landlord")))
    assert response.status_code == 404


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc.def") == "abc.def"
    assert bearer_token("bearer abc") == "abc"
    for header in (None, "", "Bearer", "Bearer   ", "Basic abc"):
        with pytest.raises(AuthenticationError):
            bearer_token(header)


def test_verifier_requires_configuration():
    with pytest.raises(ConfigurationError):
        TokenVerifier().verify("anything")


def test_token_without_subject_rejected():
    verifier = TokenVerifier(secret="s")
    with pytest.raises(AuthenticationError):
        verifier.verify(jwt.encode({"custom:role": "tenant"}, "s", algorithm="HS256"))


@pytest.fixture
def rsa_key():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption())
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
    public_jwk = jwk.construct(public_pem, "RS256").to_dict()
    public_jwk["kid"] = "key-1"
    return private_pem, public_jwk


@pytest.fixture
def jwks_client(rsa_key):
    jwks_cache.clear()
    client = mock.Mock()
    client.get.return_value = httpx.Response(
        200, json={"keys": [rsa_key[1]]}, request=httpx.Request("GET", "https://idp.example/jwks.json"))
    yield client
    jwks_cache.clear()


def test_jwks_verification(rsa_key, jwks_client):
    verifier = TokenVerifier(jwks_url="https://idp.example/jwks.json", issuer="https://idp.example",
                             client=jwks_client)
    signed = jwt.encode({"sub": "tenant-1", "iss": "https://idp.example", "custom:role": "tenant"},
                        rsa_key[0], algorithm="RS256", headers={"kid": "key-1"})

    assert verifier.verify(signed)["sub"] == "tenant-1"
    assert verifier.verify(signed)["sub"] == "tenant-1"
    # key set fetched once, then served from cache
    jwks_client.get.assert_called_once()


def test_jwks_unknown_kid_rejected(rsa_key, jwks_client):
    verifier = TokenVerifier(jwks_url="https://idp.example/jwks.json", client=jwks_client)
    signed = jwt.encode({"sub": "tenant-1"}, rsa_key[0], algorithm="RS256", headers={"kid": "other"})

    with pytest.raises(AuthenticationError):
        verifier.verify(signed)


def test_jwks_wrong_issuer_rejected(rsa_key, jwks_client):
    verifier = TokenVerifier(jwks_url="https://idp.example/jwks.json", issuer="https://idp.example",
                             client=jwks_client)
    signed = jwt.encode({"sub": "tenant-1", "iss": "https://evil.example"},
                        rsa_key[0], algorithm="RS256", headers={"kid": "key-1"})

    with pytest.raises(AuthenticationError):
        verifier.verify(signed)
