"""HTTP oracle client — UTXO pages and fee percentiles over REST.

Async HTTP client for a UTXO/fee oracle service:
- POST /utxos            — one page of UTXOs for an address
- GET  /fee-percentiles  — current fee-percentile table

Every failure (transport error, non-2xx status, malformed body) is raised
as :class:`~btc_agent.errors.OracleReject`; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from btc_agent.engine.models import OutPoint, Utxo
from btc_agent.errors.oracle_errors import OracleReject
from btc_agent.oracle.models import GetUtxosPage, MinConfirmations, Page

if TYPE_CHECKING:
    from btc_agent.bitcoin.address import Network
    from btc_agent.config.settings import OracleConfig
    from btc_agent.oracle.models import GetUtxosRequest, UtxosFilter

logger = logging.getLogger(__name__)

# Reject code used when no HTTP response was received at all
TRANSPORT_REJECT_CODE = 0


class HttpOracle:
    """Async HTTP client for the oracle REST API.

    Usage::

        oracle = HttpOracle(config.oracle)
        await oracle.connect()
        try:
            page = await oracle.get_utxos(request)
        finally:
            await oracle.close()
    """

    def __init__(self, config: OracleConfig) -> None:
        """Initialize the oracle client.

        Args:
            config: Oracle configuration (url, token, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers=headers,
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    async def __aenter__(self) -> HttpOracle:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # UtxoOracle
    # ------------------------------------------------------------------

    async def get_utxos(self, request: GetUtxosRequest) -> GetUtxosPage:
        """Fetch one page of UTXOs.

        Args:
            request: Address, network and first-page / follow-up filter.

        Returns:
            GetUtxosPage with the UTXOs, tip height and next page token.

        Raises:
            OracleReject: On transport, HTTP or decoding errors.
        """
        body = {
            "address": request.address,
            "network": str(request.network),
            "filter": _filter_to_dict(request.filter),
        }
        data = await self._request("POST", "/utxos", json=body)
        try:
            next_page = data.get("next_page")
            return GetUtxosPage(
                utxos=tuple(_utxo_from_dict(item) for item in data["utxos"]),
                tip_height=int(data["tip_height"]),
                next_page=bytes.fromhex(next_page) if next_page else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise OracleReject(502, f"malformed get_utxos response: {exc}") from exc

    async def get_current_fee_percentiles(self, network: Network) -> list[int]:
        """Fetch the fee-percentile table (millisatoshi/byte).

        Raises:
            OracleReject: On transport, HTTP or decoding errors.
        """
        data = await self._request("GET", "/fee-percentiles", params={"network": str(network)})
        try:
            return [int(rate) for rate in data["fee_percentiles"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise OracleReject(502, f"malformed fee percentiles response: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        client = self._ensure_connected()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Oracle %s %s failed: %s", method, path, exc)
            raise OracleReject(TRANSPORT_REJECT_CODE, str(exc)) from exc

        if not response.is_success:
            code, message = _error_details(response)
            logger.warning("Oracle %s %s rejected (%d): %s", method, path, code, message)
            raise OracleReject(code, message)

        try:
            data = response.json()
        except ValueError as exc:
            raise OracleReject(502, f"invalid JSON from oracle: {exc}") from exc
        if not isinstance(data, dict):
            raise OracleReject(502, "unexpected oracle response shape")
        return data

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "HttpOracle is not connected; call connect() first"
            raise RuntimeError(msg)
        return self._client


def _filter_to_dict(utxos_filter: UtxosFilter) -> dict[str, Any]:
    match utxos_filter:
        case MinConfirmations(value=value):
            return {"min_confirmations": value}
        case Page(token=token):
            return {"page": token.hex()}
    msg = f"Unsupported UTXO filter: {utxos_filter!r}"
    raise TypeError(msg)


def _utxo_from_dict(item: dict[str, Any]) -> Utxo:
    outpoint = item["outpoint"]
    return Utxo(
        outpoint=OutPoint(txid=bytes.fromhex(outpoint["txid"]), vout=int(outpoint["vout"])),
        value=int(item["value"]),
        height=int(item["height"]),
    )


def _error_details(response: httpx.Response) -> tuple[int, str]:
    """Pull ``code`` / ``message`` out of an error body, falling back to HTTP status."""
    try:
        data = response.json()
    except ValueError:
        return response.status_code, response.text.strip() or response.reason_phrase
    if isinstance(data, dict):
        message = data.get("message") or response.reason_phrase
        try:
            code = int(data.get("code", response.status_code))
        except (TypeError, ValueError):
            code = response.status_code
        return code, str(message)
    return response.status_code, response.reason_phrase
