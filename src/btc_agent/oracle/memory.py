"""In-memory oracle — a small chain model for tests and local development.

Holds per-address UTXO lists and a tip height, applies the confirmation
filter the way the real service does, and paginates with opaque tokens.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from btc_agent.engine.models import MIN_CONFIRMATIONS_UPPER_BOUND, has_min_confirmations
from btc_agent.errors.oracle_errors import OracleReject
from btc_agent.oracle.models import GetUtxosPage, MinConfirmations, Page

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import Network
    from btc_agent.engine.models import OutPoint, Utxo
    from btc_agent.oracle.models import GetUtxosRequest

logger = logging.getLogger(__name__)


def default_fee_percentiles() -> list[int]:
    """99 ascending fee rates: 1000, 2000, ..., 99000 millisatoshi/byte."""
    return list(range(1_000, 100_000, 1_000))


class MemoryOracle:
    """In-process :class:`~btc_agent.oracle.base.UtxoOracle`.

    Usage::

        oracle = MemoryOracle(page_size=2)
        oracle.add_utxo(address, utxo)
        oracle.mine_block()
    """

    def __init__(
        self,
        *,
        tip_height: int = MIN_CONFIRMATIONS_UPPER_BOUND,
        page_size: int | None = None,
        fee_percentiles: list[int] | None = None,
    ) -> None:
        """Initialize the in-memory chain.

        Args:
            tip_height: Height of the current chain tip.
            page_size: Maximum UTXOs per page; None returns a single page.
            fee_percentiles: Fee table to serve (defaults to 99 entries).
        """
        if page_size is not None and page_size < 1:
            msg = f"page_size must be positive, got {page_size}"
            raise ValueError(msg)
        self.tip_height = tip_height
        self.page_size = page_size
        self.fee_percentiles = (
            default_fee_percentiles() if fee_percentiles is None else list(fee_percentiles)
        )
        self.utxos_addresses: dict[str, list[Utxo]] = {}
        self.requests: list[GetUtxosRequest] = []
        self.fee_requests = 0
        self._reject: OracleReject | None = None

    async def __aenter__(self) -> MemoryOracle:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    # ------------------------------------------------------------------
    # Chain manipulation
    # ------------------------------------------------------------------

    def add_utxo(self, address: str, utxo: Utxo) -> None:
        """Credit *utxo* to *address*."""
        self.utxos_addresses.setdefault(address, []).append(utxo)

    def remove_utxo(self, address: str, outpoint: OutPoint) -> None:
        """Spend every UTXO of *address* at *outpoint*."""
        utxos = self.utxos_addresses.get(address, [])
        self.utxos_addresses[address] = [u for u in utxos if u.outpoint != outpoint]

    def mine_block(self, count: int = 1) -> None:
        """Advance the tip by *count* blocks."""
        self.tip_height += count

    def fail_next(self, reject_code: int, message: str) -> None:
        """Make the next oracle call raise :class:`OracleReject`."""
        self._reject = OracleReject(reject_code, message)

    # ------------------------------------------------------------------
    # UtxoOracle
    # ------------------------------------------------------------------

    async def get_utxos(self, request: GetUtxosRequest) -> GetUtxosPage:  # noqa: ASYNC910
        """Serve one page of the confirmation-filtered UTXO list."""
        self.requests.append(request)
        self._raise_pending()

        match request.filter:
            case MinConfirmations(value=min_confirmations):
                offset = 0
            case Page(token=token):
                min_confirmations, offset = _decode_token(token)
            case _:
                raise OracleReject(4, f"unsupported filter: {request.filter!r}")

        utxos = [
            utxo
            for utxo in self.utxos_addresses.get(request.address, [])
            if has_min_confirmations(utxo, self.tip_height, min_confirmations)
        ]
        end = len(utxos) if self.page_size is None else offset + self.page_size
        next_page = _encode_token(min_confirmations, end) if end < len(utxos) else None
        logger.debug(
            "Serving %d UTXOs for %s from offset %d", len(utxos[offset:end]), request.address, offset
        )
        return GetUtxosPage(
            utxos=tuple(utxos[offset:end]),
            tip_height=self.tip_height,
            next_page=next_page,
        )

    async def get_current_fee_percentiles(self, network: Network) -> list[int]:  # noqa: ASYNC910
        """Serve the configured fee table."""
        self.fee_requests += 1
        self._raise_pending()
        return list(self.fee_percentiles)

    def _raise_pending(self) -> None:
        if self._reject is not None:
            reject, self._reject = self._reject, None
            raise reject


def _encode_token(min_confirmations: int, offset: int) -> bytes:
    return f"{min_confirmations}:{offset}".encode("ascii")


def _decode_token(token: bytes) -> tuple[int, int]:
    try:
        min_confirmations, offset = token.decode("ascii").split(":")
        return int(min_confirmations), int(offset)
    except ValueError as exc:
        raise OracleReject(4, f"invalid page token: {token!r}") from exc
