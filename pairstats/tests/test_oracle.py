"""Price oracle tests over a hand-staged working set"""

from decimal import Decimal

import pytest

from pairstats.models import Pair
from pairstats.repositories.memory import InMemoryRepository
from pairstats.services.oracle import PriceOracle
from pairstats.services.pricing import AssetClassifier
from pairstats.services.staging import StagingStore
from pairstats.tests.factories import (
    DAI,
    PAIR_A_B,
    PAIR_DAI_WETH,
    PAIR_USDC_WETH,
    PAIR_WETH_A,
    TOKEN_A,
    TOKEN_B,
    USDC,
    WETH,
    make_settings,
)


def staged_pair(pair_id, token0, token1, reserve0, reserve1, reserve_ref=Decimal(0)) -> Pair:
    pair = Pair.new(pair_id, token0, token1, block_number=1, timestamp=1)
    pair.reserve0 = Decimal(reserve0)
    pair.reserve1 = Decimal(reserve1)
    pair.reserve_ref = Decimal(reserve_ref)
    return pair


class TestPriceOracle:
    @pytest.fixture
    def settings(self):
        return make_settings()

    @pytest.fixture
    def store(self, settings):
        classifier = AssetClassifier.from_settings(settings)
        return StagingStore(InMemoryRepository(), settings, classifier)

    @pytest.fixture
    def oracle(self, store, settings):
        return PriceOracle(store, AssetClassifier.from_settings(settings), settings.FALLBACK_FIAT_RATE)

    def test_fallback_without_stable_pairs(self, oracle, store):
        store.add_pair(staged_pair(PAIR_WETH_A, WETH, TOKEN_A, 1000, 2))
        assert oracle.fiat_per_reference() == Decimal(300)

    def test_rate_from_stable_pair_either_orientation(self, oracle, store):
        store.add_pair(staged_pair(PAIR_USDC_WETH, USDC, WETH, 200_000, 100))
        assert oracle.fiat_per_reference() == Decimal(2000)

        store.add_pair(staged_pair(PAIR_DAI_WETH, WETH, DAI, 100, 300_000))
        assert oracle.fiat_per_reference() == Decimal(3000)

    def test_deepest_stable_pair_wins(self, oracle, store):
        store.add_pair(staged_pair(PAIR_USDC_WETH, USDC, WETH, 200_000, 100))
        store.add_pair(staged_pair(PAIR_DAI_WETH, DAI, WETH, 50_000, 20))
        assert oracle.fiat_per_reference() == Decimal(2000)

    def test_tie_resolves_to_lowest_pair_key(self, oracle, store):
        store.add_pair(staged_pair(PAIR_DAI_WETH, DAI, WETH, 200_000, 80))
        store.add_pair(staged_pair(PAIR_USDC_WETH, USDC, WETH, 200_000, 100))
        assert oracle.fiat_per_reference() == Decimal(2000)

    def test_empty_reserves_ignored(self, oracle, store):
        store.add_pair(staged_pair(PAIR_USDC_WETH, USDC, WETH, 200_000, 0))
        assert oracle.fiat_per_reference() == Decimal(300)

    def test_reference_prices_at_one(self, oracle):
        assert oracle.reference_per_unit(WETH) == 1

    def test_stable_prices_at_inverse_rate(self, oracle, store):
        store.add_pair(staged_pair(PAIR_USDC_WETH, USDC, WETH, 200_000, 100))
        assert oracle.reference_per_unit(USDC) == Decimal("0.0005")
        assert oracle.reference_per_unit(DAI, Decimal(4000)) == Decimal("0.00025")

    def test_most_liquid_direct_pair_wins(self, oracle, store):
        store.add_pair(staged_pair(PAIR_WETH_A, WETH, TOKEN_A, 1000, 2, reserve_ref=2000))
        # deeper pool with a different price; token order reversed
        store.add_pair(staged_pair("0x" + "6" * 40, TOKEN_A, WETH, 10, 4000, reserve_ref=8000))
        assert oracle.reference_per_unit(TOKEN_A) == Decimal(400)

    def test_unpriced_without_direct_pair(self, oracle, store):
        store.add_pair(staged_pair(PAIR_WETH_A, WETH, TOKEN_A, 1000, 2, reserve_ref=2000))
        store.add_pair(staged_pair(PAIR_A_B, TOKEN_A, TOKEN_B, 10, 10, reserve_ref=10000))
        # B only trades against A: single-hop pricing gives nothing
        assert oracle.reference_per_unit(TOKEN_B) == 0
