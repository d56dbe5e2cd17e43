import logging

import pytest
from hypothesis import assume, given, settings, strategies as st

from LearningAssistantApp.core.security import PasswordHasher

HASHER = PasswordHasher("pbkdf2:sha256:1000")


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    @settings(max_examples=25, deadline=None)
    @given(password=st.text(min_size=1, max_size=64))
    def test_verify_accepts_own_hash(self, password: str) -> None:
        """Any non-empty password verifies against its own hash."""
        assert HASHER.verify(password, HASHER.hash(password))

    @settings(max_examples=25, deadline=None)
    @given(password=st.text(min_size=1, max_size=32), other=st.text(min_size=1, max_size=32))
    def test_verify_rejects_other_password(self, password: str, other: str) -> None:
        """A different password never verifies."""
        assume(password != other)
        assert not HASHER.verify(other, HASHER.hash(password))

    def test_hash_carries_method_and_is_salted(self) -> None:
        first = HASHER.hash("secret")
        second = HASHER.hash("secret")
        assert first.startswith("pbkdf2:sha256:1000$")
        assert first != second

    def test_hash_rejects_empty_password(self) -> None:
        with pytest.raises(ValueError):
            HASHER.hash("")

    @pytest.mark.parametrize("stored", ["", None, "plain-text", "$$", 42])
    def test_verify_garbage_is_false(self, stored) -> None:
        """Corrupted stored values are a failed verification, not an error."""
        assert HASHER.verify("secret", stored) is False

    def test_verify_empty_plaintext_is_false(self) -> None:
        assert HASHER.verify("", HASHER.hash("secret")) is False

    def test_verify_malformed_hash_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """A hash naming an unusable method is reported and treated as a mismatch."""
        with caplog.at_level(logging.WARNING):
            assert HASHER.verify("secret", "pbkdf2:sha256:abc$salt$deadbeef") is False
        assert "malformed" in caplog.text
