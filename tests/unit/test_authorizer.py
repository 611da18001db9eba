"""
Unit tests for the time-windowed token authorizer.

Tokens are sha256(client_id + secret + label) where the label encodes the
local calendar hour; the current and the previous hour are accepted.
"""

import hashlib
from datetime import datetime, timedelta

import pytest

from shared.auth.authorizer import Authorizer, create_token, time_window_label
from shared.auth.credential_store import CredentialStore
from shared.errors import UnauthorizedError

# Matches the clock of the fixed_authorizer fixture
FIXED_NOW = datetime(2024, 3, 15, 10, 30, 0)


class TestTimeWindowLabel:
    """Test suite for the hour label encoding."""

    def test_label_uses_zero_based_month(self):
        """Test that January encodes as month 0."""
        assert time_window_label(datetime(2024, 1, 5, 7, 59)) == "2024:0:5:7"

    def test_label_is_not_zero_padded(self):
        assert time_window_label(datetime(2024, 12, 31, 0, 0)) == "2024:11:31:0"

    def test_label_ignores_minutes_and_seconds(self):
        assert time_window_label(datetime(2024, 3, 15, 10, 0, 0)) == \
            time_window_label(datetime(2024, 3, 15, 10, 59, 59))


class TestCreateToken:
    """Test suite for token derivation."""

    def test_token_is_sha256_of_client_secret_and_label(self):
        """Test the exact token derivation."""
        expected = hashlib.sha256(b"alicealice-secret2024:2:15:10").hexdigest()

        assert create_token("alice", "alice-secret", FIXED_NOW) == expected

    def test_token_differs_per_client(self):
        assert create_token("alice", "s", FIXED_NOW) != create_token("bob", "s", FIXED_NOW)

    def test_token_differs_per_hour(self):
        later = FIXED_NOW + timedelta(hours=1)

        assert create_token("alice", "s", FIXED_NOW) != create_token("alice", "s", later)


class TestAuthorizer:
    """Test suite for Authorizer.authorize."""

    def test_current_hour_token_is_accepted(self, fixed_authorizer):
        token = create_token("alice", "alice-secret", FIXED_NOW)

        fixed_authorizer.authorize("alice", token)

    def test_previous_hour_token_is_accepted(self, fixed_authorizer):
        """Test that one hour of clock skew is tolerated."""
        token = create_token("alice", "alice-secret", FIXED_NOW - timedelta(hours=1))

        fixed_authorizer.authorize("alice", token)

    @pytest.mark.parametrize("hours", [-2, -3, 1, 24])
    def test_tokens_outside_window_are_rejected(self, fixed_authorizer, hours):
        """Test that tokens two or more hours old, or from the future, fail."""
        token = create_token("alice", "alice-secret", FIXED_NOW + timedelta(hours=hours))

        with pytest.raises(UnauthorizedError) as exc_info:
            fixed_authorizer.authorize("alice", token)

        assert exc_info.value.message == "Invalid token."

    def test_unknown_client_is_rejected(self, fixed_authorizer):
        """Test that an unknown client fails regardless of token."""
        token = create_token("mallory", "anything", FIXED_NOW)

        with pytest.raises(UnauthorizedError) as exc_info:
            fixed_authorizer.authorize("mallory", token)

        assert "mallory" in exc_info.value.message

    def test_token_for_another_client_is_rejected(self, fixed_authorizer):
        token = create_token("bob", "bob-secret", FIXED_NOW)

        with pytest.raises(UnauthorizedError):
            fixed_authorizer.authorize("alice", token)

    @pytest.mark.parametrize("token", ["", None, "deadbeef"])
    def test_malformed_tokens_are_rejected(self, fixed_authorizer, token):
        with pytest.raises(UnauthorizedError):
            fixed_authorizer.authorize("alice", token)

    def test_authorize_is_deterministic(self, fixed_authorizer):
        """Test that repeated calls at the same instant agree."""
        token = create_token("bob", "bob-secret", FIXED_NOW)

        for _ in range(3):
            fixed_authorizer.authorize("bob", token)

    def test_previous_hour_crosses_midnight_and_month(self, credential_store):
        """Test that 00:xx on the 1st falls back to 23:xx of the previous day."""
        now = datetime(2024, 3, 1, 0, 15)
        authorizer = Authorizer(credential_store, clock=lambda: now)

        # 2024 is a leap year, so the previous day is February 29th
        valid = hashlib.sha256(b"alicealice-secret2024:1:29:23").hexdigest()
        invalid = hashlib.sha256(b"alicealice-secret2024:2:1:-1").hexdigest()

        authorizer.authorize("alice", valid)
        with pytest.raises(UnauthorizedError):
            authorizer.authorize("alice", invalid)

    def test_candidate_tokens(self, fixed_authorizer):
        candidates = fixed_authorizer.candidate_tokens("alice", "alice-secret")

        assert candidates == [
            create_token("alice", "alice-secret", FIXED_NOW),
            create_token("alice", "alice-secret", datetime(2024, 3, 15, 9, 30)),
        ]

    def test_requires_credential_store(self):
        with pytest.raises(ValueError):
            Authorizer(None)

    def test_credentials_are_not_reread(self):
        """Test that mutating the source mapping after construction has no effect."""
        source = {"carol": "carol-secret"}
        authorizer = Authorizer(CredentialStore(source), clock=lambda: FIXED_NOW)
        source["carol"] = "changed"

        authorizer.authorize("carol", create_token("carol", "carol-secret", FIXED_NOW))
