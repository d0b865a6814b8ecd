"""Shared test fixtures for the btc-agent test suite."""

from __future__ import annotations

import pytest

from btc_agent.bitcoin.address import AddressType, Network
from btc_agent.bitcoin.keys import ExtendedPublicKey
from btc_agent.engine.agent import BitcoinAgent
from btc_agent.engine.registry import AddressRegistry
from btc_agent.oracle.base import CyclesLedger
from btc_agent.oracle.memory import MemoryOracle

# BIP32 test vector 1 master public key
ROOT_PUBLIC_KEY = "0339a36013301597daef41fbe593a02cc513d0b55527ec2df1050e2e8ff49c85c2"
ROOT_CHAIN_CODE = "873dff81c02f525623fd1fe5167eac3a55a049de3d314bb42ee227ffc263ef4e"
ROOT_MAINNET_ADDRESS = "15mKKb2eos1hWa6tisdPwwDC1a5J1y9nma"


@pytest.fixture
def root_key() -> ExtendedPublicKey:
    """Root extended public key (BIP32 vector 1 master)."""
    return ExtendedPublicKey.from_hex(ROOT_PUBLIC_KEY, ROOT_CHAIN_CODE)


@pytest.fixture
def registry(root_key) -> AddressRegistry:
    """Mainnet P2PKH registry at the default threshold."""
    return AddressRegistry(root_key, network=Network.MAINNET, main_address_type=AddressType.P2PKH)


@pytest.fixture
def memory_oracle() -> MemoryOracle:
    """In-memory oracle with the tip at height 6."""
    return MemoryOracle()


@pytest.fixture
def ledger() -> CyclesLedger:
    return CyclesLedger()


@pytest.fixture
def agent(memory_oracle, root_key, ledger) -> BitcoinAgent:
    """Mainnet agent with zero-confirmation default, paying into *ledger*."""
    return BitcoinAgent(
        memory_oracle,
        root_key,
        network=Network.MAINNET,
        min_confirmations=0,
        payer=ledger,
    )
