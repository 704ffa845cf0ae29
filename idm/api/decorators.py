"""
Bearer token authentication and realm role authorization.

Tokens are Keycloak-issued JWTs verified against the realm JWKS endpoint.
The verified claims are stored on ``flask.g`` under ``JWT_KEY`` as an
IdmClaims instance for the role checks and the route handlers.

Security:
- RSA signature verification via JWKS (RFC 7517), keys cached in-process
- Expiration, not-before and issued-at validation (RFC 7519)
- Issuer validation when KEYCLOAK_ISSUER is configured
"""

import logging
import threading
from functools import wraps
from typing import Iterable, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)
from flask import current_app, g, request

from idm.core.errors import UnauthenticatedError
from idm.core.rbac import IdmClaims
from .responses import error_response

logger = logging.getLogger(__name__)

# Key under which verified claims are stored on flask.g
JWT_KEY = "jwt"

ALGORITHMS = ["RS256", "RS384", "RS512"]
MISSING_OR_MALFORMED = "missing or malformed JWT"
INSUFFICIENT_PERMISSIONS = "Insufficient permissions"

# JWKS clients (cached per certs endpoint and cache lifespan)
_jwks_clients: dict[tuple[str, int], PyJWKClient] = {}
_jwks_lock = threading.Lock()


class TokenValidationError(UnauthenticatedError):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get the JWKS client of the current app, creating it on first use.

    Clients are shared by every app configured with the same certs endpoint
    and cache lifespan. Keys are cached for ``JWKS_CACHE_LIFESPAN`` seconds;
    a token signed with an unknown ``kid`` makes the client re-fetch the key
    set once.

    Returns:
        PyJWKClient: Client for the configured realm certs endpoint
    """
    cfg = current_app.config["APP_CONFIG"]
    cache_key = (cfg.keycloak_jwk_url, cfg.jwks_cache_lifespan)

    client = _jwks_clients.get(cache_key)
    if client is None:
        with _jwks_lock:
            client = _jwks_clients.get(cache_key)
            if client is None:
                logger.info(f"Initializing JWKS client for: {cfg.keycloak_jwk_url}")
                client = PyJWKClient(
                    cfg.keycloak_jwk_url,
                    cache_keys=True,
                    max_cached_keys=16,
                    lifespan=cfg.jwks_cache_lifespan,
                    headers={"User-Agent": f"{cfg.app_name}/{cfg.app_version}"},
                )
                _jwks_clients[cache_key] = client

    return client


def reset_jwks_client() -> None:
    """Drop every cached JWKS client (the next request builds a new one)."""
    with _jwks_lock:
        _jwks_clients.clear()


def validate_jwt_token(token: str) -> IdmClaims:
    """
    Verify a bearer token and extract its realm roles.

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        IdmClaims: Realm roles plus the registered claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    options = {
        "verify_signature": True,
        "verify_exp": True,
        "verify_nbf": True,
        "verify_iat": True,
        "verify_iss": bool(cfg.keycloak_issuer),
        "verify_aud": False,
        "require": ["exp"],
    }

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=ALGORITHMS,
            issuer=cfg.keycloak_issuer or None,
            options=options,
            leeway=5,
        )
    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except ImmatureSignatureError:
        raise TokenValidationError("Token not yet valid (nbf/iat claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer: {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except PyJWKClientError as e:
        raise TokenValidationError(f"Signing key not available: {e}")
    except InvalidTokenError as e:
        raise TokenValidationError(f"Token validation failed: {e}")

    idm_claims = IdmClaims.from_claims(claims)
    logger.debug(f"JWT validated for subject: {idm_claims.subject}, roles: {idm_claims.roles}")
    return idm_claims


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer":
        return None
    return token.strip() or None


def _log_auth_failure(cause: str) -> None:
    logger.error(
        f"Authentication failed | request_id={g.get('request_id', '-')} | "
        f"method={request.method} | path={request.path} | "
        f"ip={request.remote_addr} | error={cause}"
    )


def authenticate_request():
    """Verify the bearer token of the current request.

    Meant for ``before_request`` hooks: returns None on success (claims
    stored on ``g``) or a 401 envelope response on failure.
    """
    token = _bearer_token()
    if token is None:
        _log_auth_failure(MISSING_OR_MALFORMED)
        return error_response(401, MISSING_OR_MALFORMED)

    try:
        claims = validate_jwt_token(token)
    except TokenValidationError as e:
        _log_auth_failure(e.message)
        return error_response(401, e.message)

    setattr(g, JWT_KEY, claims)
    return None


def get_jwt_claims() -> Optional[IdmClaims]:
    """Verified claims of the current request, or None before authentication."""
    return g.get(JWT_KEY)


def get_user_roles() -> list[str]:
    claims = get_jwt_claims()
    return list(claims.roles) if claims else []


def has_role(role: str) -> bool:
    claims = get_jwt_claims()
    return claims is not None and claims.has_role(role)


def has_any_role(roles: Iterable[str]) -> bool:
    claims = get_jwt_claims()
    return claims is not None and claims.has_any_role(roles)


def require_any_role(roles: Iterable[str]):
    """
    Decorator to require at least one of the given realm roles.

    Must run after authentication (``/api/v1`` routes).

    Returns:
        Decorated function answering 401 without verified claims and 403
        without a matching role

    Example:
        @bp.route("", methods=["GET"])
        @require_any_role([IDM_ADMIN, IDM_USER])
        def find_all_employees():
            ...
    """
    required = list(roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            claims = get_jwt_claims()
            if claims is None:
                _log_auth_failure("no verified token in request context")
                return error_response(401, MISSING_OR_MALFORMED)

            if not claims.has_any_role(required):
                logger.warning(
                    f"Access denied: insufficient role. "
                    f"Required: {required}, token has: {claims.roles}, "
                    f"path={request.path}, method={request.method}, ip={request.remote_addr}"
                )
                return error_response(403, INSUFFICIENT_PERMISSIONS)

            logger.debug(f"Role check passed for {request.path}: required={required}")
            return fn(*args, **kwargs)

        return wrapper
    return decorator


def require_role(role: str):
    """Decorator to require a single realm role."""
    return require_any_role([role])
