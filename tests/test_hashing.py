"""
Operation hashing (hashing.py)

Tests OperationHasher and operation_id.
"""

import hashlib

import pytest

from persistql.faults import ConfigInvalidFault
from persistql.hashing import DEFAULT_ALGORITHM, OperationHasher, default_hasher, operation_id

from tests.conftest import COUNT_UPDATED, COUNT_UPDATED_ID, GET_COUNT, GET_COUNT_ID


class TestOperationHasher:

    def test_default_is_sha1(self):
        assert DEFAULT_ALGORITHM == "sha1"
        assert default_hasher.algorithm == "sha1"

    def test_known_ids(self):
        assert operation_id(GET_COUNT) == GET_COUNT_ID
        assert operation_id(COUNT_UPDATED) == COUNT_UPDATED_ID

    def test_hex_digest_of_utf8_bytes(self):
        text = "query café {\n  name\n}\n"
        assert operation_id(text) == hashlib.sha1(text.encode("utf-8")).hexdigest()

    def test_exact_text_matters(self):
        assert operation_id(GET_COUNT) != operation_id(GET_COUNT.rstrip("\n"))

    def test_ids_are_40_hex_chars(self):
        digest = operation_id(GET_COUNT)
        assert len(digest) == 40
        int(digest, 16)

    def test_callable(self):
        assert default_hasher(GET_COUNT) == GET_COUNT_ID

    def test_other_algorithm(self):
        hasher = OperationHasher("sha256")
        assert hasher.hash(GET_COUNT) == hashlib.sha256(GET_COUNT.encode()).hexdigest()

    def test_unknown_algorithm(self):
        with pytest.raises(ConfigInvalidFault) as exc_info:
            OperationHasher("not-a-hash")
        assert exc_info.value.metadata["key"] == "hash_algorithm"

    def test_verify(self):
        assert default_hasher.verify(GET_COUNT, GET_COUNT_ID)
        assert not default_hasher.verify(GET_COUNT, COUNT_UPDATED_ID)

    def test_variable_length_algorithm_rejected(self):
        with pytest.raises(ConfigInvalidFault):
            OperationHasher("shake_128")
