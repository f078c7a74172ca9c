"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Azure AD bearer-token authentication for the REST API.
             Tokens are RS256 JWTs validated against the tenant's
             published signing keys. With no tenant configured
             (local development) tokens are decoded unverified.
-------------------------------------------------------------------------
"""
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import jwt
from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication


logger = logging.getLogger(__name__)

JWKS_URL = 'https://login.microsoftonline.com/{tenant}/discovery/v2.0/keys'


@dataclass
class AzureUser:
    """The authenticated caller, built from token claims."""

    email: str
    name: str = ''
    oid: str = ''
    claims: Dict[str, Any] = field(default_factory=dict)

    is_authenticated = True
    is_anonymous = False

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> 'AzureUser':
        email = claims.get('preferred_username') or claims.get('email') or claims.get('upn') or ''
        return cls(
            email=email.strip().lower(),
            name=claims.get('name', ''),
            oid=claims.get('oid', ''),
            claims=claims,
        )

    def __str__(self) -> str:
        return self.email


@lru_cache(maxsize=4)
def get_jwks_client(tenant_id: str) -> jwt.PyJWKClient:
    """One cached key client per tenant; keys are fetched lazily."""
    return jwt.PyJWKClient(JWKS_URL.format(tenant=tenant_id), cache_keys=True)


def valid_issuers(tenant_id: str) -> Tuple[str, str]:
    return (
        f'https://login.microsoftonline.com/{tenant_id}/v2.0',
        f'https://sts.windows.net/{tenant_id}/',
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and (when a tenant is configured) verify an Azure AD token.

    Raises:
        jwt.ExpiredSignatureError: Token is past its exp claim.
        jwt.PyJWTError: Any other signature, issuer or audience failure.
    """
    tenant_id = settings.AZURE_TENANT_ID
    if not tenant_id:
        return jwt.decode(token, options={'verify_signature': False, 'verify_exp': True})

    signing_key = get_jwks_client(tenant_id).get_signing_key_from_jwt(token)
    client_id = settings.AZURE_CLIENT_ID
    return jwt.decode(
        token,
        signing_key.key,
        algorithms=['RS256'],
        issuer=valid_issuers(tenant_id),
        audience=client_id or None,
        options={'verify_aud': bool(client_id)},
    )


class AzureADAuthentication(BaseAuthentication):
    """
    DRF authentication from ``Authorization: Bearer <token>``.

    A missing or malformed header fails outright rather than falling
    through to anonymous access, since every API route needs a caller.
    """

    keyword = 'Bearer'

    def authenticate(self, request) -> Optional[Tuple[AzureUser, str]]:
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not header:
            raise exceptions.AuthenticationFailed('No authorization header provided', code='NO_AUTH_HEADER')

        parts = header.split()
        if len(parts) != 2 or parts[0] != self.keyword:
            raise exceptions.AuthenticationFailed('Invalid authorization header format', code='INVALID_AUTH_HEADER')

        token = parts[1]
        try:
            claims = decode_token(token)
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed('Token expired', code='TOKEN_EXPIRED')
        except (jwt.PyJWTError, ValueError) as exc:
            logger.warning(f"Rejected bearer token: {exc}")
            raise exceptions.AuthenticationFailed('Invalid token', code='INVALID_TOKEN')

        user = AzureUser.from_claims(claims)
        if not user.email:
            raise exceptions.AuthenticationFailed('Invalid token', code='INVALID_TOKEN')

        allowed = settings.ALLOWED_EMAIL_DOMAINS
        domain = user.email.rsplit('@', 1)[-1]
        if allowed and domain not in allowed:
            logger.warning(f"Sign-in from disallowed domain: {user.email}")
            raise exceptions.PermissionDenied('Email domain not allowed', code='DOMAIN_NOT_ALLOWED')

        return user, token

    def authenticate_header(self, request) -> str:
        return self.keyword
