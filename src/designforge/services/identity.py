"""Identity Verifier
==================

Validates the ``Authorization: Bearer <token>`` credential that the design
tool attaches to every request and turns it into an :class:`Identity`.

Checks run in a fixed order so callers get the most specific message:

1. header present and ``Bearer`` prefixed
2. signing secret configured (server fault, not the caller's)
3. signature valid
4. ``sub``/``aud``/``iss`` claims present
5. issuer equals the trusted issuer
6. audience matches the app id, when one is configured
7. token not expired
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

import jwt

from .service_base import ConfigurationError, Unauthenticated

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '
REQUIRED_CLAIMS = ('sub', 'aud', 'iss')


@dataclass(frozen=True)
class Identity:
    """Claims of a verified caller."""
    subject: str
    audience: Any
    issuer: str
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
    scope: Optional[str] = None
    team_id: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> 'Identity':
        return cls(
            subject=str(claims['sub']),
            audience=claims['aud'],
            issuer=claims['iss'],
            issued_at=claims.get('iat'),
            expires_at=claims.get('exp'),
            scope=claims.get('scope'),
            team_id=claims.get('brandId') or claims.get('team_id'),
            claims=dict(claims),
        )


class IdentityVerifier:
    """Verify HMAC-signed bearer tokens issued by a single trusted issuer."""

    def __init__(
        self,
        secret: Optional[str],
        issuer: str = 'canva.com',
        audience: Optional[str] = None,
        algorithms: Sequence[str] = ('HS256',),
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.algorithms = list(algorithms)
        self._clock = clock

    def verify(self, authorization: Optional[str]) -> Identity:
        """Return the caller's identity or raise ``Unauthenticated``.

        Raises:
            Unauthenticated: caller-caused failure, message names the reason
            ConfigurationError: the verifier itself is misconfigured or crashed
        """
        token = self._extract_token(authorization)

        if not self.secret:
            raise ConfigurationError('JWT signing secret is not configured (JWT_SECRET)')

        try:
            claims = self._decode(token)
            return self._check_claims(claims)
        except Unauthenticated:
            raise
        except Exception as e:
            logger.exception("Identity verification crashed")
            raise ConfigurationError(f'Authentication failed: {e}') from e

    def _extract_token(self, authorization: Optional[str]) -> str:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise Unauthenticated('Missing or invalid authorization header. Expected: Bearer <token>')
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise Unauthenticated('Missing or invalid authorization header. Expected: Bearer <token>')
        return token

    def _decode(self, token: str) -> Dict[str, Any]:
        # Claim checks run below so each failure gets its own message
        options = {
            'verify_signature': True,
            'verify_exp': False,
            'verify_aud': False,
            'verify_iss': False,
        }
        try:
            return jwt.decode(token, self.secret, algorithms=self.algorithms, options=options)
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected token: {type(e).__name__}: {e}")
            raise Unauthenticated('Invalid JWT token') from e

    def _check_claims(self, claims: Dict[str, Any]) -> Identity:
        if any(not claims.get(name) for name in REQUIRED_CLAIMS):
            raise Unauthenticated('Invalid JWT: missing required claims')

        if claims['iss'] != self.issuer:
            raise Unauthenticated('Invalid JWT: invalid issuer')

        if self.audience and self.audience not in _as_list(claims['aud']):
            raise Unauthenticated('Invalid JWT: invalid audience')

        exp = claims.get('exp')
        if exp is not None:
            try:
                expires_at = float(exp)
            except (TypeError, ValueError):
                raise Unauthenticated('Invalid JWT token') from None
            if self._clock() > expires_at:
                raise Unauthenticated('JWT token has expired')

        return Identity.from_claims(claims)


def _as_list(value: Any) -> Iterable[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return [value]
