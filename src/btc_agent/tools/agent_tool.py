#!/usr/bin/env python3
"""Bitcoin Agent Tool — derive addresses, list UTXOs, query fees.

A CLI utility around :class:`~btc_agent.engine.agent.BitcoinAgent`. The
root key, network and oracle come from ``BTCAGENT_*`` environment
variables or the YAML file named by ``BTCAGENT_CONFIG_PATH``:

    # Print the main address of the configured root key
    btc-agent main

    # Derive the address at a raw (hex) derivation path
    btc-agent derive <hex_path>

    # List UTXOs / show the balance of any address
    btc-agent utxos <address> [min_confirmations]
    btc-agent balance <address> [min_confirmations]

    # Show the fee-percentile table, or one fee level
    btc-agent fees
    btc-agent fee <slow|standard|fast|percentile>

Set ``BTCAGENT_ORACLE__URL=memory://`` to run against an empty
in-process chain instead of a remote oracle.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any

from btc_agent.bitcoin.address import validate_address
from btc_agent.config.settings import AgentConfig
from btc_agent.engine.agent import BitcoinAgent
from btc_agent.engine.fees import parse_fee_request
from btc_agent.errors.agent_errors import AgentError
from btc_agent.oracle.base import CyclesLedger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from btc_agent.oracle.http import HttpOracle
    from btc_agent.oracle.memory import MemoryOracle

logger = logging.getLogger(__name__)

MEMORY_ORACLE_SCHEME = "memory://"


def _open_oracle(config: AgentConfig) -> HttpOracle | MemoryOracle:
    """The oracle named by ``config.oracle.url``, not yet connected."""
    if config.oracle.url.startswith(MEMORY_ORACLE_SCHEME):
        from btc_agent.oracle.memory import MemoryOracle

        return MemoryOracle(page_size=config.oracle.page_size)

    from btc_agent.oracle.http import HttpOracle

    return HttpOracle(config.oracle)


def _run(config: AgentConfig, action: Callable[[BitcoinAgent], Awaitable[Any]]) -> Any:
    """Run *action* against an agent wired to a connected oracle."""

    async def _main() -> Any:
        ledger = CyclesLedger()
        async with _open_oracle(config) as oracle:
            agent = BitcoinAgent.from_config(config, oracle, payer=ledger)
            result = await action(agent)
        logger.debug("%d oracle call(s), %d cycles paid", ledger.calls, ledger.spent)
        return result

    return asyncio.run(_main())


def _cmd_main(config: AgentConfig) -> None:
    """Print the root key's address."""
    agent = BitcoinAgent.from_config(config, _open_oracle(config))
    print(f"Network:      {agent.network}")
    print(f"Main address: {agent.get_main_address()}")


def _cmd_derive(config: AgentConfig, hex_path: str) -> None:
    """Derive the address at a raw derivation path."""
    try:
        raw_path = bytes.fromhex(hex_path)
    except ValueError:
        print(f"Invalid hex derivation path: {hex_path}")
        sys.exit(1)
    agent = BitcoinAgent.from_config(config, _open_oracle(config))
    address = agent.add_address(raw_path)
    key = agent.registry.public_key(address)
    print(f"Path:       {hex_path or '(empty)'}")
    print(f"Depth:      {key.depth}")
    print(f"Public key: {key.public_key.hex()}")
    print(f"Address:    {address}")


def _check_address(config: AgentConfig, address: str) -> None:
    if not validate_address(address, config.network):
        print(f"Invalid {config.network} address: {address}")
        sys.exit(1)


def _cmd_utxos(config: AgentConfig, address: str, min_confirmations: int | None) -> None:
    """List UTXOs of an address."""
    _check_address(config, address)
    response = _run(config, lambda agent: agent.get_utxos(address, min_confirmations))
    if not response.utxos:
        print(f"No UTXOs found for {address}")
        return
    print(f"UTXOs for {address} (tip height {response.tip_height}):")
    print("-" * 80)
    total = 0
    for u in sorted(response.utxos):
        print(f"  {u.outpoint.txid.hex()}:{u.outpoint.vout}  {u.value:>14,} sats  (height={u.height})")
        total += u.value
    print("-" * 80)
    print(f"  Total: {total:>14,} sats  [{len(response.utxos)} UTXOs]")


def _cmd_balance(config: AgentConfig, address: str, min_confirmations: int | None) -> None:
    """Show the balance of an address."""
    _check_address(config, address)
    balance = _run(config, lambda agent: agent.get_balance(address, min_confirmations))
    print(f"Address: {address}")
    print(f"Balance: {balance:>14,} sats  ({balance / 1e8:.8f} BTC)")


def _cmd_fees(config: AgentConfig) -> None:
    """Print the current fee-percentile table."""
    fees = _run(config, lambda agent: agent.get_current_fees())
    print(f"Fee percentiles ({len(fees)} entries, millisatoshi/byte):")
    for percentile, rate in enumerate(fees):
        print(f"  p{percentile:<3} {rate:>10,}")


def _cmd_fee(config: AgentConfig, level: str) -> None:
    """Print the fee rate of one level or percentile."""
    try:
        request = parse_fee_request(level)
    except ValueError:
        print(f"Invalid fee level: {level} (use slow, standard, fast or a percentile)")
        sys.exit(1)
    rate = _run(config, lambda agent: agent.get_current_fee(request))
    print(f"{level}: {rate:,} millisatoshi/byte")


def _optional_int(args: list[str], position: int) -> int | None:
    if len(args) <= position:
        return None
    try:
        return int(args[position])
    except ValueError:
        print(f"Expected an integer, got: {args[position]}")
        sys.exit(1)


def main() -> None:
    """CLI entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    cmd = sys.argv[1].lower()

    try:
        config = AgentConfig()
        logging.basicConfig(
            level=config.log_level.value,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        if cmd == "main":
            _cmd_main(config)
        elif cmd == "derive":
            if len(sys.argv) < 3:
                print("Usage: btc-agent derive <hex_path>")
                sys.exit(1)
            _cmd_derive(config, sys.argv[2])
        elif cmd == "utxos":
            if len(sys.argv) < 3:
                print("Usage: btc-agent utxos <address> [min_confirmations]")
                sys.exit(1)
            _cmd_utxos(config, sys.argv[2], _optional_int(sys.argv, 3))
        elif cmd == "balance":
            if len(sys.argv) < 3:
                print("Usage: btc-agent balance <address> [min_confirmations]")
                sys.exit(1)
            _cmd_balance(config, sys.argv[2], _optional_int(sys.argv, 3))
        elif cmd == "fees":
            _cmd_fees(config)
        elif cmd == "fee":
            if len(sys.argv) < 3:
                print("Usage: btc-agent fee <slow|standard|fast|percentile>")
                sys.exit(1)
            _cmd_fee(config, sys.argv[2])
        else:
            print(f"Unknown command: {cmd}")
            print(__doc__)
            sys.exit(1)
    except (AgentError, ValueError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
