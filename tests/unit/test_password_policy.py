"""Unit tests for the password strength policy."""

import pytest

from authcore.config import PasswordPolicyConfig
from authcore.kernel.identity.errors import PasswordMismatchError, WeakPasswordError
from authcore.kernel.identity.password_policy import PasswordPolicy


@pytest.fixture
def policy() -> PasswordPolicy:
    return PasswordPolicy()


class TestPasswordPolicy:
    """Tests for PasswordPolicy.validate."""
    
    def test_strong_password_passes(self, policy):
        result = policy.validate("Str0ng!Passw0rd", "Str0ng!Passw0rd")
        
        assert result.ok
        assert result.error is None
    
    @pytest.mark.parametrize("password", ["password1234", "PASSWORD1234", "Abc123Abc123"])
    def test_common_password_rejected_any_case(self, policy, password):
        result = policy.validate(password, password)
        
        assert isinstance(result.error, WeakPasswordError)
        assert result.error.reason == WeakPasswordError.TOO_COMMON
        assert result.error.message == "Password is too common"
        assert result.error.field == "password"
    
    def test_deny_list_checked_before_length(self, policy):
        """'welcome12345!' is common and also lacks an uppercase letter; common wins."""
        result = policy.validate("welcome12345!", "welcome12345!")
        
        assert result.error.reason == WeakPasswordError.TOO_COMMON
    
    def test_exactly_min_length_rejected(self, policy):
        """With the strict boundary a 12-character password is too short."""
        password = "Abcdefgh1!xy"
        assert len(password) == 12
        
        result = policy.validate(password, password)
        
        assert result.error.reason == WeakPasswordError.TOO_SHORT
        assert result.error.message == "Password must be longer than 12 characters"
    
    def test_one_over_min_length_passes(self, policy):
        password = "Abcdefgh1!xyz"
        
        assert policy.validate(password, password).ok
    
    def test_inclusive_boundary_accepts_min_length(self):
        policy = PasswordPolicy(PasswordPolicyConfig(strict_min_length=False))
        
        assert policy.validate("Abcdefgh1!xy", "Abcdefgh1!xy").ok
        result = policy.validate("Abcdefg1!xy", "Abcdefg1!xy")
        assert result.error.reason == WeakPasswordError.TOO_SHORT
        assert result.error.message == "Password must be at least 12 characters"
    
    @pytest.mark.parametrize("password", [
        "abcdefghij1!x",   # no uppercase
        "ABCDEFGHIJ1!X",   # no lowercase
        "Abcdefghijk!x",   # no digit
        "Abcdefghij123",   # no special character
        "Abcdefghij12-",   # '-' is not in the special set
    ])
    def test_missing_character_class(self, policy, password):
        result = policy.validate(password, password)
        
        assert result.error.reason == WeakPasswordError.MISSING_CHARACTER_CLASS
        assert result.error.status_code == 400
    
    def test_confirmation_mismatch(self, policy):
        result = policy.validate("Str0ng!Passw0rd", "Str0ng!Passw0rD")
        
        assert isinstance(result.error, PasswordMismatchError)
        assert result.error.field == "confirmation"
    
    def test_strength_checked_before_confirmation(self, policy):
        result = policy.validate("short", "different")
        
        assert isinstance(result.error, WeakPasswordError)
    
    def test_custom_deny_list_is_case_insensitive(self):
        policy = PasswordPolicy(PasswordPolicyConfig(common_passwords=["Corporate#2026X"]))
        
        result = policy.validate("corporate#2026x", "corporate#2026x")
        
        assert result.error.reason == WeakPasswordError.TOO_COMMON
