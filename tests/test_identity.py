"""
Tests for confessboard Identity Module
"""

import pytest

from confessboard.core.identity import (
    CREDENTIAL_LENGTH, TAG_LENGTH, derive_author_tag, generate_credential,
    validate_credential,
)


class TestGenerateCredential:
    """Tests for credential generation."""

    def test_length(self):
        """Test credentials have the fixed length."""
        assert len(generate_credential()) == CREDENTIAL_LENGTH

    def test_unique(self):
        """Test two credentials differ."""
        assert generate_credential() != generate_credential()


class TestValidateCredential:
    """Tests for credential validation."""

    def test_accepts_bytes(self):
        cred = bytes(range(32))
        assert validate_credential(cred) == cred

    def test_accepts_bytearray(self):
        """Test bytearray is converted to immutable bytes."""
        cred = validate_credential(bytearray(32))
        assert isinstance(cred, bytes)

    def test_rejects_short(self):
        with pytest.raises(ValueError):
            validate_credential(b"\x01" * 31)

    def test_rejects_long(self):
        with pytest.raises(ValueError):
            validate_credential(b"\x01" * 33)

    def test_rejects_str(self):
        with pytest.raises(TypeError):
            validate_credential("a" * 32)


class TestDeriveAuthorTag:
    """Tests for author tag derivation."""

    def setup_method(self):
        self.credential = generate_credential()

    def test_tag_length(self):
        """Test tags are 32 bytes."""
        assert len(derive_author_tag(self.credential, 0)) == TAG_LENGTH

    def test_deterministic(self):
        """Test same inputs give the same tag."""
        tag1 = derive_author_tag(self.credential, 7)
        tag2 = derive_author_tag(self.credential, 7)

        assert tag1 == tag2

    def test_differs_per_slot(self):
        """Test one credential gives unrelated tags for different slots."""
        tags = {derive_author_tag(self.credential, slot_id) for slot_id in range(50)}

        assert len(tags) == 50

    def test_differs_per_credential(self):
        """Test different credentials give different tags for one slot."""
        other = generate_credential()

        assert derive_author_tag(self.credential, 0) != derive_author_tag(other, 0)

    def test_tag_does_not_contain_credential(self):
        """Test the credential does not appear in the tag."""
        tag = derive_author_tag(self.credential, 0)

        assert tag != self.credential
        assert self.credential[:8] not in tag

    def test_known_vector(self):
        """Test the encoding stays stable across releases."""
        assert derive_author_tag(bytes(32), 0).hex() == (
            "8b34d3c6f352d3ef0426b3f982746c2fe7376f0d9426f9897500c8800eb2fd71"
        )
        assert derive_author_tag(bytes(32), 1).hex() == (
            "2ddca91fa858b004ca4469adbea66f431d861b5a56f6c84fef4e875cba50d5e8"
        )

    def test_max_slot_id(self):
        """Test the largest u64 slot id is accepted."""
        assert len(derive_author_tag(self.credential, 2**64 - 1)) == TAG_LENGTH

    def test_rejects_negative_slot(self):
        with pytest.raises(ValueError):
            derive_author_tag(self.credential, -1)

    def test_rejects_oversized_slot(self):
        with pytest.raises(ValueError):
            derive_author_tag(self.credential, 2**64)

    def test_rejects_bool_slot(self):
        with pytest.raises(TypeError):
            derive_author_tag(self.credential, True)

    def test_rejects_bad_credential(self):
        with pytest.raises(ValueError):
            derive_author_tag(b"short", 0)
