"""Revocable JWT sessions.

Tokens stay self-contained and signed, but each one is also mirrored by a
registry key ``<prefix><jti>``. A token is accepted only while both hold:
the signature and claims verify, and the registry key exists.

Two expiry mechanisms compete, and exactly one governs each token:

* ``exp``: absolute expiry baked into the signature. The registry key gets
  the same remaining lifetime and can never be extended.
* ``expk``: relative expiry in seconds known only to the registry. The
  token itself never expires cryptographically; ``touch`` slides the
  registry TTL forward.

When ``exp`` applies ``expk`` is never written. A token with neither is
live until destroyed.
"""

import copy
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from jwt_sessions.auth.security import JoseSigner
from jwt_sessions.config import Settings
from jwt_sessions.constants import DEFAULT_SESSION_PREFIX, REGISTRY_MARKER
from jwt_sessions.errors import TokenExpiredError
from jwt_sessions.registry.protocols import IdGenerator, Registry, Signer, UUIDGenerator
from jwt_sessions.schemas.options import (
    CompleteToken,
    DecodeOptions,
    SignOptions,
    VerifyOptions,
)
from jwt_sessions.utils.durations import Duration, to_seconds

logger = logging.getLogger(__name__)


def _coerce_sign_options(options: SignOptions | Mapping[str, Any] | None) -> SignOptions:
    """Return a private deep copy so callers keep sole ownership of theirs."""
    if options is None:
        return SignOptions()
    if isinstance(options, SignOptions):
        return options.model_copy(deep=True)
    return SignOptions.model_validate(copy.deepcopy(dict(options)))


def _positive_seconds(value: Duration, name: str = "expires_key_in") -> int:
    seconds = to_seconds(value)
    if seconds <= 0:
        raise ValueError(f"{name} must be at least one second, got {value!r}")
    return seconds


def _coerce_verify_options(options: VerifyOptions | Mapping[str, Any] | None) -> VerifyOptions:
    if options is None:
        return VerifyOptions()
    if isinstance(options, VerifyOptions):
        return options
    return VerifyOptions.model_validate(dict(options))


class SessionTokenManager:
    """
    Issues signed tokens and keeps a registry entry per live session.

    The manager holds no mutable state of its own; the registry is the only
    shared resource and is relied on for per-command atomicity only.
    """

    def __init__(
        self,
        registry: Registry,
        *,
        signer: Signer | None = None,
        id_generator: IdGenerator | None = None,
        prefix: str = DEFAULT_SESSION_PREFIX,
        expires_key_in: Duration | None = None,
        secret: str | None = None,
        algorithm: str | None = None,
    ):
        if not prefix:
            raise ValueError("prefix must not be empty")
        if expires_key_in is not None:
            # Fail at construction, not on the first sign()
            _positive_seconds(expires_key_in)
        self.registry = registry
        self.signer = signer or JoseSigner()
        self.id_generator = id_generator or UUIDGenerator()
        self.prefix = prefix
        self.expires_key_in = expires_key_in
        # Used when a call passes no secret / algorithm of its own
        self.secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(
        cls,
        registry: Registry,
        settings: Settings,
        **kwargs: Any,
    ) -> "SessionTokenManager":
        """Build a manager with prefix, key expiry, secret and algorithm from *settings*."""
        return cls(
            registry,
            prefix=settings.session_prefix,
            expires_key_in=settings.session_expires_key_in,
            secret=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            **kwargs,
        )

    def get_key(self, jti: str) -> str:
        """Registry key for session *jti*."""
        return f"{self.prefix}{jti}"

    def _resolve_secret(self, secret: str | None) -> str:
        secret = secret if secret is not None else self.secret
        if not secret:
            raise ValueError("a signing secret is required")
        return secret

    async def sign(
        self,
        payload: Mapping[str, Any] | None,
        secret: str | None = None,
        options: SignOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Sign *payload* and register the new session.

        If the registry write fails the error propagates and the token is
        not returned: a token without a registry entry could never verify.
        For the same reason a token whose ``exp`` has already passed raises
        ``TokenExpiredError`` instead of being returned.
        """
        payload = copy.deepcopy(dict(payload)) if payload is not None else {}
        secret = self._resolve_secret(secret)
        options = _coerce_sign_options(options)
        if self.algorithm and "algorithm" not in options.model_fields_set:
            options.algorithm = self.algorithm

        expires_in = options.expires_in if options.expires_in is not None else payload.get("exp")
        expires_key_in = (
            options.expires_key_in if options.expires_key_in is not None else self.expires_key_in
        )
        exp = payload.get("exp")
        if exp is not None and (isinstance(exp, bool) or not isinstance(exp, int | float)):
            raise ValueError(f"exp must be a number of seconds since the epoch, got {exp!r}")
        if expires_in is not None:
            payload.pop("expk", None)
        elif expires_key_in is not None:
            payload["expk"] = _positive_seconds(expires_key_in)
        elif payload.get("expk") is not None:
            # Pass-through expk is the registry TTL
            payload["expk"] = _positive_seconds(payload["expk"], "expk")

        if not payload.get("jti"):
            payload.pop("jti", None)
            if not options.jwtid:
                options.jwtid = self.id_generator.new_id()

        token = await self.signer.sign(
            payload, secret, options.model_copy(update={"expires_key_in": None})
        )

        decoded = self.decode(token)
        await self._register(decoded)
        return token

    async def _register(self, decoded: dict[str, Any]) -> None:
        key = self.get_key(decoded["jti"])
        expires_at = decoded.get("exp")
        if expires_at is not None:
            ttl = int(expires_at) - int(datetime.now(UTC).timestamp())
            if ttl <= 0:
                logger.warning("Token %s expired at signing time; not registered", decoded["jti"])
                raise TokenExpiredError(
                    "jwt expired", datetime.fromtimestamp(int(expires_at), tz=UTC)
                )
        elif decoded.get("expk") is not None:
            ttl = int(decoded["expk"])
        else:
            ttl = None

        await self.registry.set(key, REGISTRY_MARKER, ttl)
        logger.debug("Registered session key=%s ttl=%s", key, ttl)

    async def verify(
        self,
        token: str,
        secret: str | None = None,
        options: VerifyOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Verify *token* against both its signature and the registry.

        Raises:
            TokenExpiredError: the session was revoked, its registry key
                expired, or the token's own ``exp`` has passed.
            NotBeforeError: the token's ``nbf`` lies in the future.
            JsonWebTokenError: the token is malformed or badly signed.
        """
        secret = self._resolve_secret(secret)
        options = _coerce_verify_options(options)
        if self.algorithm and "algorithms" not in options.model_fields_set:
            options = options.model_copy(update={"algorithms": [self.algorithm]})
        decoded = self.decode(token)
        jti = decoded.get("jti") if decoded else None

        if jti and not await self.registry.exists(self.get_key(jti)):
            logger.debug("Rejected token for missing session %s", jti)
            raise TokenExpiredError("jwt revoked")

        try:
            return await self.signer.verify(token, secret, options)
        except TokenExpiredError:
            if jti:
                await self._discard_expired(jti)
            raise

    async def _discard_expired(self, jti: str) -> None:
        """Best-effort removal of an expired session's key."""
        try:
            await self.destroy_by_jti(jti)
        except Exception as e:
            logger.warning("Failed to remove expired session %s: %s", jti, e)

    def decode(
        self,
        token: str,
        options: DecodeOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | CompleteToken | None:
        """Decode without verifying. Returns ``None`` for malformed tokens."""
        if options is not None and not isinstance(options, DecodeOptions):
            options = DecodeOptions.model_validate(dict(options))
        return self.signer.decode(token, options)

    async def touch(self, token: str) -> bool:
        """
        Slide the registry expiry of an ``expk``-governed session.

        A no-op for tokens with ``exp`` (their lifetime is fixed by the
        signature) and for tokens with no expiry at all. A session whose
        key has already expired or been destroyed is not revived.

        Returns ``True`` if a TTL was refreshed.
        """
        decoded = self.decode(token)
        if not decoded:
            return False
        jti, expk = decoded.get("jti"), decoded.get("expk")
        if not jti or decoded.get("exp") is not None:
            return False
        if isinstance(expk, bool) or not isinstance(expk, int | float) or expk < 1:
            return False
        refreshed = await self.registry.expire(self.get_key(jti), int(expk))
        logger.debug("Touched session %s ttl=%s refreshed=%s", jti, expk, refreshed)
        return refreshed

    async def destroy(self, token: str) -> None:
        """Revoke the session behind *token*. Idempotent."""
        decoded = self.decode(token)
        if decoded:
            await self.destroy_by_jti(decoded.get("jti"))

    async def destroy_by_jti(self, jti: str | None) -> None:
        """Revoke session *jti*. Idempotent; empty ids are ignored."""
        if jti:
            await self.registry.delete(self.get_key(jti))
            logger.debug("Destroyed session %s", jti)
