"""Tests for PairRegistry and canonical pair keys."""

import pytest

from cpamm.errors import IdenticalAssets, PairNotFound
from cpamm.pools import PairRegistry, canonical_key, sort_assets
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C


class TestCanonicalKey:
    """Tests for order-independent key derivation."""

    def test_symmetric(self):
        assert canonical_key(TOKEN_A, TOKEN_B) == canonical_key(TOKEN_B, TOKEN_A)

    def test_case_insensitive(self):
        assert canonical_key("0x" + "A" * 40, TOKEN_B) == canonical_key(TOKEN_A, TOKEN_B)

    def test_distinct_pairs_have_distinct_keys(self):
        keys = {
            canonical_key(TOKEN_A, TOKEN_B),
            canonical_key(TOKEN_A, TOKEN_C),
            canonical_key(TOKEN_B, TOKEN_C),
        }
        assert len(keys) == 3

    def test_key_format(self):
        key = canonical_key(TOKEN_A, TOKEN_B)
        assert key.startswith("0x")
        assert len(key) == 66

    def test_identical_assets_raise(self):
        with pytest.raises(IdenticalAssets):
            canonical_key(TOKEN_A, TOKEN_A)

    def test_identical_assets_differing_case_raise(self):
        with pytest.raises(IdenticalAssets):
            canonical_key(TOKEN_A, TOKEN_A.upper().replace("0X", "0x"))

    def test_sort_assets(self):
        assert sort_assets(TOKEN_B, TOKEN_A) == (TOKEN_A, TOKEN_B)
        assert sort_assets(TOKEN_A, TOKEN_B) == (TOKEN_A, TOKEN_B)


class TestPairRegistry:
    """Tests for pair storage and lookup."""

    def test_get_or_create_inserts_empty_pair(self):
        registry = PairRegistry()
        pair = registry.get_or_create(TOKEN_B, TOKEN_A)
        assert len(registry) == 1
        assert pair.asset_low == TOKEN_A
        assert pair.asset_high == TOKEN_B
        assert (pair.reserve_low, pair.reserve_high, pair.total_shares) == (0, 0, 0)
        assert pair.key == canonical_key(TOKEN_A, TOKEN_B)

    def test_get_or_create_returns_same_record(self):
        registry = PairRegistry()
        first = registry.get_or_create(TOKEN_A, TOKEN_B)
        second = registry.get_or_create(TOKEN_B, TOKEN_A)
        assert first is second
        assert len(registry) == 1

    def test_get_existing_missing_raises(self):
        registry = PairRegistry()
        with pytest.raises(PairNotFound):
            registry.get_existing(TOKEN_A, TOKEN_B)
        assert len(registry) == 0

    def test_get_existing_either_order(self):
        registry = PairRegistry()
        pair = registry.get_or_create(TOKEN_A, TOKEN_B)
        assert registry.get_existing(TOKEN_B, TOKEN_A) is pair

    def test_identical_assets_raise(self):
        registry = PairRegistry()
        with pytest.raises(IdenticalAssets):
            registry.get_or_create(TOKEN_A, TOKEN_A)

    def test_contains_and_pairs(self):
        registry = PairRegistry()
        registry.get_or_create(TOKEN_A, TOKEN_B)
        registry.get_or_create(TOKEN_A, TOKEN_C)
        assert canonical_key(TOKEN_B, TOKEN_A) in registry
        assert canonical_key(TOKEN_B, TOKEN_C) not in registry
        assert {p.key for p in registry.pairs()} == {
            canonical_key(TOKEN_A, TOKEN_B),
            canonical_key(TOKEN_A, TOKEN_C),
        }

    def test_discard(self):
        registry = PairRegistry()
        pair = registry.get_or_create(TOKEN_A, TOKEN_B)
        registry.discard(pair)
        assert len(registry) == 0
