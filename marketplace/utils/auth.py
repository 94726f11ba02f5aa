"""Bearer token verification and role checks"""

from functools import wraps
from typing import Dict, Iterable, Optional

import httpx
import structlog
from flask import current_app, g, request
from jose import JWTError, jwt

from marketplace.utils.cache import jwks_cache
from marketplace.utils.exceptions import AuthenticationError, AuthorizationError, ConfigurationError

logger = structlog.get_logger(__name__)

ROLE_CLAIM = "custom:role"


class TokenVerifier:
    """
    Verify bearer tokens.

    With a shared secret configured, tokens are checked with HMAC. Otherwise
    the signing key is looked up by ``kid`` in the identity provider's
    published key set, which is cached for ``jwks_ttl`` seconds.
    """

    def __init__(self, secret: Optional[str] = None, algorithms: Iterable[str] = ("HS256",),
                 jwks_url: Optional[str] = None, issuer: Optional[str] = None,
                 audience: Optional[str] = None, jwks_ttl: int = 3600,
                 client: Optional[httpx.Client] = None):
        self.secret = secret
        self.algorithms = list(algorithms)
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.audience = audience
        self.jwks_ttl = jwks_ttl
        self.client = client

    @classmethod
    def from_settings(cls, settings) -> "TokenVerifier":
        return cls(
            secret=settings.JWT_SECRET,
            algorithms=settings.JWT_ALGORITHMS,
            jwks_url=settings.COGNITO_JWKS_URL,
            issuer=settings.COGNITO_ISSUER,
            audience=settings.COGNITO_APP_CLIENT_ID,
            jwks_ttl=settings.JWKS_CACHE_TTL,
        )

    def _fetch_jwks(self) -> Dict:
        cached_keys = jwks_cache.get(self.jwks_url)
        if cached_keys is not None:
            return cached_keys

        try:
            if self.client is not None:
                response = self.client.get(self.jwks_url)
            else:
                with httpx.Client(timeout=10.0) as client:
                    response = client.get(self.jwks_url)
            response.raise_for_status()
            keys = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Failed to fetch signing keys", url=self.jwks_url, error=str(e))
            raise AuthenticationError("Unable to verify token") from e

        jwks_cache.set(self.jwks_url, keys, self.jwks_ttl)
        logger.info("Signing keys fetched", url=self.jwks_url, count=len(keys.get("keys", [])))
        return keys

    def _signing_key(self, token: str) -> Dict:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise AuthenticationError("Malformed token") from e

        for key in self._fetch_jwks().get("keys", []):
            if key.get("kid") == header.get("kid"):
                return key
        raise AuthenticationError("Unknown signing key")

    def verify(self, token: str) -> Dict:
        """Return the verified claims or raise AuthenticationError"""
        options = {"verify_aud": self.audience is not None}

        if self.secret:
            key, algorithms = self.secret, self.algorithms
        elif self.jwks_url:
            key, algorithms = self._signing_key(token), ["RS256"]
        else:
            raise ConfigurationError("No token verification key is configured")

        try:
            claims = jwt.decode(token, key, algorithms=algorithms, audience=self.audience,
                                issuer=self.issuer, options=options)
        except JWTError as e:
            logger.info("Token rejected", error=str(e))
            raise AuthenticationError("Invalid token") from e

        if not claims.get("sub"):
            raise AuthenticationError("Token has no subject")
        return claims


def bearer_token(header: Optional[str]) -> str:
    if not header:
        raise AuthenticationError("Authorization header is missing")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def authenticate(allowed_roles: Iterable[str]) -> Dict:
    """Verify the request's bearer token and check the caller's role"""
    token = bearer_token(request.headers.get("Authorization"))
    claims = current_app.token_verifier.verify(token)

    role = str(claims.get(ROLE_CLAIM) or "").lower()
    if not role:
        raise AuthorizationError("Token carries no role")

    allowed = [r.lower() for r in allowed_roles]
    if allowed and role not in allowed:
        logger.info("Role not permitted", role=role, allowed=allowed, path=request.path)
        raise AuthorizationError("Access denied for this role")

    return {"id": claims["sub"], "role": role}


def require_auth(*roles: str):
    """Decorator verifying the bearer token and exposing ``g.current_user``"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            g.current_user = authenticate(roles)
            return func(*args, **kwargs)
        return wrapper
    return decorator
