"""Unit tests for auth/security.py: JWT signing, verification and decoding."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from jwt_sessions.auth.security import JoseSigner
from jwt_sessions.errors import JsonWebTokenError, NotBeforeError, TokenExpiredError
from jwt_sessions.schemas.options import DecodeOptions, SignOptions, VerifyOptions
from tests.helpers.token_factory import SECRET, create_token, now_ts


@pytest.fixture()
def signer():
    return JoseSigner()


class TestSign:
    """Tests for token creation."""

    async def test_adds_iat(self, signer):
        before = now_ts()
        token = await signer.sign({"userId": "1"}, SECRET)

        payload = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert before <= payload["iat"] <= before + 2

    async def test_no_timestamp(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET, SignOptions(no_timestamp=True))

        assert "iat" not in signer.decode(token)

    async def test_expires_in_relative_to_iat(self, signer):
        token = await signer.sign({"iat": 1_000}, SECRET, SignOptions(expires_in="2 hours"))

        assert signer.decode(token)["exp"] == 1_000 + 7_200

    async def test_expires_in_timedelta(self, signer):
        token = await signer.sign(
            {"iat": 1_000}, SECRET, SignOptions(expires_in=timedelta(minutes=1))
        )

        assert signer.decode(token)["exp"] == 1_060

    async def test_registered_claims_from_options(self, signer):
        options = SignOptions(
            jwtid="j1", audience="api", issuer="auth", subject="user-1", not_before=0
        )

        payload = signer.decode(await signer.sign({}, SECRET, options))

        assert payload["jti"] == "j1"
        assert payload["aud"] == "api"
        assert payload["iss"] == "auth"
        assert payload["sub"] == "user-1"
        assert payload["nbf"] == payload["iat"]

    async def test_algorithm_and_headers(self, signer):
        token = await signer.sign(
            {"userId": "1"}, SECRET, SignOptions(algorithm="HS512", headers={"kid": "k1"})
        )

        header = jwt.get_unverified_header(token)
        assert header["alg"] == "HS512"
        assert header["kid"] == "k1"

    @pytest.mark.parametrize(
        ("option", "claim"),
        [
            ("expires_in", "exp"),
            ("not_before", "nbf"),
            ("jwtid", "jti"),
            ("audience", "aud"),
            ("issuer", "iss"),
            ("subject", "sub"),
        ],
    )
    async def test_option_colliding_with_claim_rejected(self, signer, option, claim):
        value = 10 if option in {"expires_in", "not_before"} else "x"

        with pytest.raises(ValueError, match=claim):
            await signer.sign({claim: value}, SECRET, SignOptions(**{option: value}))

    async def test_unknown_option_rejected(self, signer):
        with pytest.raises(ValueError, match="unsupported"):
            await signer.sign({}, SECRET, SignOptions.model_validate({"mutatePayload": True}))

    async def test_non_mapping_payload_rejected(self, signer):
        with pytest.raises(ValueError):
            await signer.sign("not a mapping", SECRET)  # type: ignore[arg-type]

    async def test_unsupported_algorithm(self, signer):
        with pytest.raises(JsonWebTokenError):
            await signer.sign({}, SECRET, SignOptions(algorithm="none-such"))


class TestVerify:
    """Tests for signature and claim verification."""

    async def test_valid_token(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET)

        payload = await signer.verify(token, SECRET)

        assert payload["userId"] == "1"

    async def test_unknown_option_rejected(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET)

        with pytest.raises(ValueError, match="unsupported verify options"):
            await signer.verify(token, SECRET, VerifyOptions.model_validate({"nonce": "x"}))

    async def test_expired_token(self, signer):
        exp = now_ts() - 10
        token = create_token({"userId": "1", "exp": exp})

        with pytest.raises(TokenExpiredError) as exc_info:
            await signer.verify(token, SECRET)

        assert exc_info.value.expired_at == datetime.fromtimestamp(exp, tz=UTC)

    async def test_expired_token_within_leeway(self, signer):
        token = create_token({"userId": "1", "exp": now_ts() - 10})

        payload = await signer.verify(token, SECRET, VerifyOptions(leeway=60))

        assert payload["userId"] == "1"

    async def test_ignore_expiration(self, signer):
        token = create_token({"userId": "1", "exp": now_ts() - 10})

        payload = await signer.verify(token, SECRET, VerifyOptions(ignore_expiration=True))

        assert payload["userId"] == "1"

    async def test_not_before(self, signer):
        nbf = now_ts() + 60
        token = create_token({"userId": "1", "nbf": nbf})

        with pytest.raises(NotBeforeError) as exc_info:
            await signer.verify(token, SECRET)

        assert exc_info.value.date == datetime.fromtimestamp(nbf, tz=UTC)

    async def test_ignore_not_before(self, signer):
        token = create_token({"userId": "1", "nbf": now_ts() + 60})

        payload = await signer.verify(token, SECRET, VerifyOptions(ignore_not_before=True))

        assert payload["userId"] == "1"

    async def test_max_age_exceeded(self, signer):
        token = create_token({"userId": "1", "iat": now_ts() - 100})

        with pytest.raises(TokenExpiredError, match="maxAge"):
            await signer.verify(token, SECRET, VerifyOptions(max_age="10 seconds"))

    async def test_max_age_requires_iat(self, signer):
        token = create_token({"userId": "1"})

        with pytest.raises(JsonWebTokenError):
            await signer.verify(token, SECRET, VerifyOptions(max_age=10))

    async def test_wrong_secret(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET)

        with pytest.raises(JsonWebTokenError) as exc_info:
            await signer.verify(token, "wrong-secret")

        assert type(exc_info.value) is JsonWebTokenError

    async def test_tampered_token(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET)
        tampered = token[:-5] + "XXXXX"

        with pytest.raises(JsonWebTokenError):
            await signer.verify(tampered, SECRET)

    async def test_disallowed_algorithm(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET, SignOptions(algorithm="HS512"))

        with pytest.raises(JsonWebTokenError):
            await signer.verify(token, SECRET, VerifyOptions(algorithms=["HS256"]))

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "not.a.valid.jwt"])
    async def test_malformed(self, signer, token):
        with pytest.raises(JsonWebTokenError):
            await signer.verify(token, SECRET)

    async def test_audience_any_match(self, signer):
        token = create_token({"aud": ["api", "admin"]})

        payload = await signer.verify(token, SECRET, VerifyOptions(audience=["web", "admin"]))

        assert payload["aud"] == ["api", "admin"]

    async def test_audience_ignored_when_not_requested(self, signer):
        token = create_token({"aud": "api"})

        assert (await signer.verify(token, SECRET))["aud"] == "api"

    @pytest.mark.parametrize(
        "options",
        [
            VerifyOptions(audience="web"),
            VerifyOptions(issuer="someone-else"),
            VerifyOptions(subject="user-2"),
            VerifyOptions(jwtid="other"),
        ],
    )
    async def test_claim_mismatch(self, signer, options):
        token = create_token({"aud": "api", "iss": "auth", "sub": "user-1", "jti": "j1"})

        with pytest.raises(JsonWebTokenError):
            await signer.verify(token, SECRET, options)

    async def test_invalid_exp_type(self, signer):
        token = create_token({"exp": "tomorrow"})

        with pytest.raises(JsonWebTokenError):
            await signer.verify(token, SECRET)


class TestDecode:
    """Tests for unverified decoding."""

    async def test_decode_ignores_signature(self, signer):
        token = await signer.sign({"userId": "1"}, "some-other-secret")

        assert signer.decode(token)["userId"] == "1"

    async def test_complete(self, signer):
        token = await signer.sign({"userId": "1"}, SECRET)

        complete = signer.decode(token, DecodeOptions(complete=True))

        assert complete.header == {"alg": "HS256", "typ": "JWT"}
        assert complete.payload["userId"] == "1"
        assert complete.signature

    def test_non_object_payload(self, signer):
        token = jwt.encode({"a": 1}, SECRET).split(".")
        # base64url("[1]") as the payload segment
        token[1] = "WzFd"

        assert signer.decode(".".join(token)) is None

    @pytest.mark.parametrize("token", [None, 42, "", "abc", "a.b", "a.b.c", "x.y.z.w"])
    def test_malformed_returns_none(self, signer, token):
        assert signer.decode(token) is None
