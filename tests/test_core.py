"""Tests for password hashing, id parsing and name list storage."""

from __future__ import annotations

import uuid

import pytest
from passlib.crypto.digest import pbkdf2_hmac

from licensing.core.errors import (
    IdentityBadFormatError,
    LicensingErrorType,
    parse_id,
)
from licensing.core.security import hash_password, password_accepted, verify_password
from licensing.db.base import join_names, split_names


class TestPasswordHashing:

    def test_hash_is_sixteen_bytes_and_deterministic(self):
        salt = uuid.uuid4()
        first = hash_password("s3cret", salt)
        assert len(first) == 16
        assert first == hash_password("s3cret", salt)

    def test_salt_changes_hash(self):
        assert hash_password("s3cret", uuid.uuid4()) != hash_password("s3cret", uuid.uuid4())

    def test_salt_uses_little_endian_layout(self):
        # A uuid whose bytes and bytes_le differ must hash by bytes_le.
        salt = uuid.UUID("00112233-4455-6677-8899-aabbccddeeff")
        assert salt.bytes != salt.bytes_le
        expected = pbkdf2_hmac("sha1", b"pw", salt.bytes_le, 15000, 16)
        assert hash_password("pw", salt) == expected

    def test_verify(self):
        salt = uuid.uuid4()
        stored = hash_password("s3cret", salt)
        assert verify_password("s3cret", salt, stored)
        assert not verify_password("S3cret", salt, stored)

    def test_null_hash_accepts_anything(self):
        salt = uuid.uuid4()
        assert password_accepted("whatever", salt, None)
        assert password_accepted("", salt, None)
        assert password_accepted(None, salt, None)

    def test_empty_password_is_a_real_password(self):
        salt = uuid.uuid4()
        stored = hash_password("", salt)
        assert password_accepted("", salt, stored)
        assert password_accepted(None, salt, stored)
        assert not password_accepted("x", salt, stored)


class TestParseId:

    @pytest.mark.parametrize("text,expected", [("10000001", 10000001), (" 42 ", 42), ("-7", -7)])
    def test_valid(self, text, expected):
        assert parse_id(text, "User") == expected

    @pytest.mark.parametrize("text", ["", "abc", "12a", "--5", "1.5", "١٢", None])
    def test_invalid(self, text):
        with pytest.raises(IdentityBadFormatError) as info:
            parse_id(text, "Customer")
        assert info.value.error_type is LicensingErrorType.IDENTITY_BAD_FORMAT
        assert info.value.kind == "Customer"


class TestNameLists:

    def test_join_uses_single_space(self):
        assert join_names(["Analyst", "Silver"]) == "Analyst Silver"

    def test_empty_list_stores_null(self):
        assert join_names([]) is None
        assert join_names(None) is None
        assert join_names(["", "  "]) is None

    def test_split_accepts_every_separator(self):
        assert split_names("a,b; c;;d  e") == ["a", "b", "c", "d", "e"]

    def test_split_null(self):
        assert split_names(None) == []
        assert split_names("") == []

    def test_round_trip_keeps_order(self):
        names = ["zeta", "alpha", "Mid"]
        assert split_names(join_names(names)) == names
