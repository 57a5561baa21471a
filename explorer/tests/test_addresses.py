"""Tests for address canonicalization."""

from __future__ import annotations

import pytest

from explorer.core.addresses import canonical_address, is_address
from explorer.tests.conftest import CONTRACT_ADDRESS


class TestCanonicalAddress:
    def test_checksums_lowercase_input(self):
        assert canonical_address(CONTRACT_ADDRESS.lower()) == CONTRACT_ADDRESS

    def test_checksums_uppercase_input(self):
        assert canonical_address("0x" + CONTRACT_ADDRESS[2:].upper()) == CONTRACT_ADDRESS

    def test_prefix_optional(self):
        assert canonical_address(CONTRACT_ADDRESS[2:].lower()) == CONTRACT_ADDRESS

    @pytest.mark.parametrize("value", ["", "0x", "0x1234", "0x" + "zz" * 20, "0x" + "00" * 21])
    def test_rejects_malformed(self, value: str):
        assert is_address(value) is False
        with pytest.raises(ValueError):
            canonical_address(value)
