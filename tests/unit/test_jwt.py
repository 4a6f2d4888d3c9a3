"""Unit tests for access token issuance and parsing."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from authcore.kernel.identity.errors import InvalidTokenError
from authcore.kernel.identity.jwt import TokenIssuer

SECRET = "unit-test-signing-secret-0123456789abcdef"


@pytest.fixture
def issuer(clock) -> TokenIssuer:
    return TokenIssuer(SECRET, clock=clock)


def _claims(email: str = "john.doe@example.com") -> dict:
    return {"email": email, "roles": ["NORMAL_USER"]}


class TestTokenIssuerConfig:
    """Constructor guards."""
    
    def test_short_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenIssuer("too-short")
    
    def test_non_hmac_algorithm_rejected(self):
        with pytest.raises(ValueError):
            TokenIssuer(SECRET, algorithm="RS256")
    
    @pytest.mark.parametrize("lifetime", [0, 901, 3600])
    def test_lifetime_out_of_range_rejected(self, lifetime):
        with pytest.raises(ValueError):
            TokenIssuer(SECRET, lifetime_seconds=lifetime)


class TestTokenIssue:
    """Tests for TokenIssuer.issue and parse."""
    
    def test_issue_and_parse(self, issuer):
        subject = str(uuid.uuid4())
        issued = issuer.issue(subject, _claims())
        
        claims = issuer.parse(issued.token)
        
        assert claims.sub == subject
        assert claims.email == "john.doe@example.com"
        assert claims.roles == ["NORMAL_USER"]
        assert claims.exp - claims.iat == 900
        assert issued.expires_in == 900
        assert claims == issued.claims
    
    def test_each_token_has_unique_id(self, issuer):
        subject = str(uuid.uuid4())
        
        first = issuer.issue(subject, _claims())
        second = issuer.issue(subject, _claims())
        
        assert first.claims.jti != second.claims.jti
        assert first.token != second.token
    
    def test_reserved_claims_cannot_be_overridden(self, issuer):
        subject = str(uuid.uuid4())
        claims = _claims()
        claims.update({"sub": "someone-else", "exp": 9999999999})
        
        issued = issuer.issue(subject, claims)
        
        assert issued.claims.sub == subject
        assert issued.claims.exp - issued.claims.iat == 900
    
    def test_shorter_lifetime(self, clock):
        issuer = TokenIssuer(SECRET, lifetime_seconds=300, clock=clock)
        
        issued = issuer.issue(str(uuid.uuid4()), _claims())
        
        assert issued.claims.exp - issued.claims.iat == 300


class TestTokenParse:
    """Rejection paths."""
    
    def test_wrong_secret(self, issuer, clock):
        other = TokenIssuer("another-signing-secret-0123456789abcdef", clock=clock)
        token = other.issue(str(uuid.uuid4()), _claims()).token
        
        with pytest.raises(InvalidTokenError):
            issuer.parse(token)
    
    def test_tampered_payload(self, issuer):
        token = issuer.issue(str(uuid.uuid4()), _claims()).token
        header, payload, signature = token.split(".")
        forged = issuer.issue(str(uuid.uuid4()), _claims("attacker@example.com")).token
        tampered = ".".join([header, forged.split(".")[1], signature])
        
        with pytest.raises(InvalidTokenError):
            issuer.parse(tampered)
    
    @pytest.mark.parametrize("token", ["", "not.a.token", "abc"])
    def test_malformed(self, issuer, token):
        with pytest.raises(InvalidTokenError):
            issuer.parse(token)
    
    def test_subject_must_be_account_id(self, issuer):
        token = issuer.issue("not-a-uuid", _claims()).token
        
        with pytest.raises(InvalidTokenError):
            issuer.parse(token)
    
    def test_missing_claims(self, issuer):
        token = jwt.encode({"sub": str(uuid.uuid4())}, SECRET, algorithm="HS256")
        
        with pytest.raises(InvalidTokenError):
            issuer.parse(token)
    
    def test_overlong_lifetime_rejected(self, issuer, clock):
        """A correctly signed token living longer than 15 minutes is still refused."""
        now = int(clock().timestamp())
        payload = {
            "sub": str(uuid.uuid4()),
            "email": "john.doe@example.com",
            "roles": ["NORMAL_USER"],
            "iat": now,
            "exp": now + 3600,
            "jti": str(uuid.uuid4()),
        }
        token = jwt.encode(payload, SECRET, algorithm="HS256")
        
        with pytest.raises(InvalidTokenError):
            issuer.parse(token)


class TestTokenExpiry:
    """Expiry is checked against the issuer clock."""
    
    def test_not_expired_before_exp(self, issuer, clock):
        issued = issuer.issue(str(uuid.uuid4()), _claims())
        clock.advance(seconds=899)
        
        assert issuer.is_expired(issued.claims) is False
        assert issuer.validate(issued.token).sub == issued.claims.sub
    
    def test_expired_at_exp(self, issuer, clock):
        issued = issuer.issue(str(uuid.uuid4()), _claims())
        clock.advance(seconds=900)
        
        assert issuer.is_expired(issued.claims) is True
        with pytest.raises(InvalidTokenError, match="expired"):
            issuer.validate(issued.token)
    
    def test_parse_ignores_expiry(self, issuer, clock):
        issued = issuer.issue(str(uuid.uuid4()), _claims())
        clock.advance(hours=2)
        
        assert issuer.parse(issued.token).jti == issued.claims.jti
    
    def test_is_expired_with_explicit_time(self, issuer):
        issued = issuer.issue(str(uuid.uuid4()), _claims())
        later = datetime.fromtimestamp(issued.claims.exp, tz=timezone.utc) + timedelta(seconds=1)
        
        assert issuer.is_expired(issued.claims, now=later) is True
