"""Agent state snapshots — flatten / rebuild the registry across upgrades.

The snapshot is a Pydantic model so it can be persisted with
``model_dump_json()`` and read back with ``model_validate_json()``. Byte
fields are hex strings and UTXO sets are sorted, so two snapshots of the
same registry serialise identically.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

from btc_agent.bitcoin.address import AddressType, Network  # noqa: TC001 - Pydantic needs these at runtime
from btc_agent.bitcoin.keys import ExtendedPublicKey
from btc_agent.bitcoin.path import decode_word
from btc_agent.engine.models import MIN_CONFIRMATIONS_UPPER_BOUND, OutPoint, Utxo, UtxosState
from btc_agent.engine.registry import AddressRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class OutPointSchema(BaseModel):
    txid: str
    vout: int = Field(ge=0)


class UtxoSchema(BaseModel):
    outpoint: OutPointSchema
    value: int = Field(ge=0)
    height: int = Field(ge=0)

    @classmethod
    def from_utxo(cls, utxo: Utxo) -> UtxoSchema:
        return cls(
            outpoint=OutPointSchema(txid=utxo.outpoint.txid.hex(), vout=utxo.outpoint.vout),
            value=utxo.value,
            height=utxo.height,
        )

    def to_utxo(self) -> Utxo:
        return Utxo(
            outpoint=OutPoint(txid=bytes.fromhex(self.outpoint.txid), vout=self.outpoint.vout),
            value=self.value,
            height=self.height,
        )


class UtxosStateSchema(BaseModel):
    seen_state: list[UtxoSchema] = Field(default_factory=list)
    unseen_state: list[UtxoSchema] = Field(default_factory=list)
    min_confirmations: int = Field(ge=0, le=MIN_CONFIRMATIONS_UPPER_BOUND)

    @classmethod
    def from_state(cls, state: UtxosState) -> UtxosStateSchema:
        return cls(
            seen_state=[UtxoSchema.from_utxo(u) for u in sorted(state.seen_state)],
            unseen_state=[UtxoSchema.from_utxo(u) for u in sorted(state.unseen_state)],
            min_confirmations=state.min_confirmations,
        )

    def to_state(self) -> UtxosState:
        return UtxosState(
            min_confirmations=self.min_confirmations,
            seen_state=frozenset(u.to_utxo() for u in self.seen_state),
            unseen_state=frozenset(u.to_utxo() for u in self.unseen_state),
        )


class ExtendedPublicKeySchema(BaseModel):
    public_key: str
    chain_code: str = ""
    derivation_path: list[str] = Field(default_factory=list)

    @field_validator("derivation_path")
    @classmethod
    def _check_path_words(cls, value: list[str]) -> list[str]:
        for word in value:
            decode_word(bytes.fromhex(word))
        return value

    @classmethod
    def from_key(cls, key: ExtendedPublicKey) -> ExtendedPublicKeySchema:
        return cls(
            public_key=key.public_key.hex(),
            chain_code=key.chain_code.hex(),
            derivation_path=[index.hex() for index in key.derivation_path],
        )

    def to_key(self) -> ExtendedPublicKey:
        return ExtendedPublicKey(
            public_key=bytes.fromhex(self.public_key),
            chain_code=bytes.fromhex(self.chain_code),
            derivation_path=tuple(bytes.fromhex(index) for index in self.derivation_path),
        )


class AgentState(BaseModel):
    """Everything needed to rebuild an agent after an upgrade.

    Pair order follows registration order; it is not meaningful but is
    stable for a given registry.
    """

    network: Network
    main_address_type: AddressType
    root_key: ExtendedPublicKeySchema
    ecdsa_pub_key_addresses: list[tuple[str, ExtendedPublicKeySchema]]
    utxos_state_addresses: list[tuple[str, UtxosStateSchema]]
    min_confirmations: int = Field(ge=0, le=MIN_CONFIRMATIONS_UPPER_BOUND)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def get_state(registry: AddressRegistry) -> AgentState:
    """Snapshot *registry*."""
    keys: list[tuple[str, ExtendedPublicKeySchema]] = []
    states: list[tuple[str, UtxosStateSchema]] = []
    for address, key, state in registry.entries():
        keys.append((address, ExtendedPublicKeySchema.from_key(key)))
        states.append((address, UtxosStateSchema.from_state(state)))
    return AgentState(
        network=registry.network,
        main_address_type=registry.main_address_type,
        root_key=ExtendedPublicKeySchema.from_key(registry.root_key),
        ecdsa_pub_key_addresses=keys,
        utxos_state_addresses=states,
        min_confirmations=registry.min_confirmations,
    )


def from_state(state: AgentState) -> AddressRegistry:
    """Rebuild a registry from *state*.

    The main address is re-derived from the root key; every other entry is
    replayed verbatim.

    Raises:
        ValueError: If the snapshot's key and state lists disagree.
    """
    registry = AddressRegistry(
        state.root_key.to_key(),
        network=state.network,
        main_address_type=state.main_address_type,
        min_confirmations=state.min_confirmations,
    )
    utxos_states = dict(state.utxos_state_addresses)
    keys = dict(state.ecdsa_pub_key_addresses)
    if keys.keys() != utxos_states.keys():
        msg = "Snapshot key and UTXO state entries do not match"
        raise ValueError(msg)

    for address, key in state.ecdsa_pub_key_addresses:
        registry.restore(address, key.to_key(), utxos_states[address].to_state())

    logger.info(
        "Restored %d address(es), main address %s", len(registry), registry.main_address
    )
    return registry
