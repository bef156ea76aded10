"""JWT signing, verification and decoding on top of python-jose.

``JoseSigner`` is the default ``Signer`` behind ``SessionTokenManager``.
It accepts the option vocabulary of the JavaScript ``jsonwebtoken``
package so tokens and call sites carry over between stacks:

* ``expires_in`` / ``not_before`` become ``exp`` / ``nbf`` relative to ``iat``
* ``jwtid``, ``audience``, ``issuer`` and ``subject`` become claims
* verification failures are translated into this package's error kinds,
  so python-jose exceptions never reach callers

Time-based claims are checked here rather than by python-jose so that an
expired token raises ``TokenExpiredError`` and a premature one raises
``NotBeforeError`` (python-jose folds the latter into a generic claims
error).
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError

from jwt_sessions.errors import JsonWebTokenError, NotBeforeError, TokenExpiredError
from jwt_sessions.schemas.options import (
    CompleteToken,
    DecodeOptions,
    SignOptions,
    VerifyOptions,
)
from jwt_sessions.utils.durations import to_seconds

# option name -> claim it would overwrite
_CLAIM_OPTIONS = {
    "expires_in": "exp",
    "not_before": "nbf",
    "jwtid": "jti",
    "audience": "aud",
    "issuer": "iss",
    "subject": "sub",
}

# Everything except the signature, algorithm and iat format is checked below
_JOSE_OPTIONS = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


def _now() -> int:
    return int(datetime.now(UTC).timestamp())


def _as_list(value: str | list[str]) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


def _int_claim(payload: Mapping[str, Any], name: str) -> int | None:
    value = payload.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise JsonWebTokenError(f"invalid {name} value")
    return int(value)


class JoseSigner:
    """Stateless JWT codec. Safe to share across tasks."""

    async def sign(
        self,
        claims: Mapping[str, Any],
        secret: str,
        options: SignOptions | None = None,
    ) -> str:
        if not isinstance(claims, Mapping):
            raise ValueError("payload must be a mapping")
        options = options or SignOptions()
        if options.extras:
            raise ValueError(f"unsupported sign options: {sorted(options.extras)}")

        payload = dict(claims)
        for option, claim in _CLAIM_OPTIONS.items():
            if getattr(options, option) is not None and claim in payload:
                raise ValueError(
                    f'Bad "{option}" option: the payload already has an "{claim}" claim'
                )

        timestamp = payload.get("iat")
        if timestamp is None:
            timestamp = _now()
        if options.no_timestamp:
            payload.pop("iat", None)
        else:
            payload["iat"] = timestamp

        if options.not_before is not None:
            payload["nbf"] = timestamp + to_seconds(options.not_before)
        if options.expires_in is not None:
            payload["exp"] = timestamp + to_seconds(options.expires_in)
        if options.jwtid is not None:
            payload["jti"] = options.jwtid
        if options.audience is not None:
            payload["aud"] = options.audience
        if options.issuer is not None:
            payload["iss"] = options.issuer
        if options.subject is not None:
            payload["sub"] = options.subject

        try:
            return jwt.encode(
                payload,
                secret,
                algorithm=options.algorithm,
                headers=options.headers,
            )
        except JOSEError as exc:
            raise JsonWebTokenError(str(exc), exc) from exc

    async def verify(
        self,
        token: str,
        secret: str,
        options: VerifyOptions | None = None,
    ) -> dict[str, Any]:
        options = options or VerifyOptions()
        if options.extras:
            raise ValueError(f"unsupported verify options: {sorted(options.extras)}")
        if not isinstance(token, str) or not token:
            raise JsonWebTokenError("jwt must be provided")
        if token.count(".") != 2:
            raise JsonWebTokenError("jwt malformed")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=options.algorithms,
                options=_JOSE_OPTIONS,
            )
        except JOSEError as exc:
            raise JsonWebTokenError(str(exc) or "invalid token", exc) from exc

        now = _now()
        self._check_time_claims(payload, options, now)
        self._check_registered_claims(payload, options)

        if options.max_age is not None:
            issued_at = _int_claim(payload, "iat")
            if issued_at is None:
                raise JsonWebTokenError("iat required when maxAge is specified")
            max_age_at = issued_at + to_seconds(options.max_age)
            if now >= max_age_at + options.leeway:
                raise TokenExpiredError(
                    "maxAge exceeded", datetime.fromtimestamp(max_age_at, tz=UTC)
                )

        return payload

    @staticmethod
    def _check_time_claims(payload: dict[str, Any], options: VerifyOptions, now: int) -> None:
        not_before = _int_claim(payload, "nbf")
        if not_before is not None and not options.ignore_not_before:
            if not_before > now + options.leeway:
                raise NotBeforeError("jwt not active", datetime.fromtimestamp(not_before, tz=UTC))

        expires_at = _int_claim(payload, "exp")
        if expires_at is not None and not options.ignore_expiration:
            if now >= expires_at + options.leeway:
                raise TokenExpiredError("jwt expired", datetime.fromtimestamp(expires_at, tz=UTC))

    @staticmethod
    def _check_registered_claims(payload: dict[str, Any], options: VerifyOptions) -> None:
        if options.audience is not None:
            token_audience = payload.get("aud")
            if token_audience is None or not set(_as_list(token_audience)) & set(
                _as_list(options.audience)
            ):
                raise JsonWebTokenError(
                    f"jwt audience invalid. expected: {' or '.join(_as_list(options.audience))}"
                )
        if options.issuer is not None and payload.get("iss") not in _as_list(options.issuer):
            raise JsonWebTokenError(
                f"jwt issuer invalid. expected: {','.join(_as_list(options.issuer))}"
            )
        if options.subject is not None and payload.get("sub") != options.subject:
            raise JsonWebTokenError(f"jwt subject invalid. expected: {options.subject}")
        if options.jwtid is not None and payload.get("jti") != options.jwtid:
            raise JsonWebTokenError(f"jwt jwtid invalid. expected: {options.jwtid}")

    def decode(
        self,
        token: str,
        options: DecodeOptions | None = None,
    ) -> dict[str, Any] | CompleteToken | None:
        """Read claims without checking the signature.

        Returns ``None`` for anything that is not a structurally valid JWT
        with a JSON object payload. Never raises on bad input.
        """
        options = options or DecodeOptions()
        if not isinstance(token, str) or token.count(".") != 2:
            return None
        try:
            payload = jwt.get_unverified_claims(token)
            header = jwt.get_unverified_header(token) if options.complete else None
        except JOSEError:
            return None
        if not isinstance(payload, dict):
            return None
        if options.complete:
            return CompleteToken(
                header=header,
                payload=payload,
                signature=token.rsplit(".", 1)[1],
            )
        return payload
