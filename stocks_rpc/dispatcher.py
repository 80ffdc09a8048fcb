"""JSON-RPC request dispatch: one input line in, one response line out."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol

LOGGER = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


class Gateway(Protocol):
    """Anything that can run a named provider operation."""

    def fetch(self, operation: str, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class MethodSpec:
    """A dispatched RPC method and the gateway operation behind it."""

    name: str
    operation: str
    accepts_limit: bool = False
    requires_symbol: bool = True


METHODS: Mapping[str, MethodSpec] = {
    spec.name: spec
    for spec in (
        MethodSpec("getStockPrice", "stock_price"),
        MethodSpec("getStockNews", "news", accepts_limit=True),
        MethodSpec("getCompanyOverview", "company_overview"),
        MethodSpec("getInsiderTransactions", "insider_transactions", accepts_limit=True),
        MethodSpec("getIncomeStatement", "income_statement", accepts_limit=True),
        MethodSpec("getEarningsEstimates", "earnings_estimates", accepts_limit=True),
    )
}


class RequestError(ValueError):
    """Raised for a request that cannot be dispatched; the message goes back to the caller."""


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _parse_limit(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise RequestError(f"Invalid limit parameter: {json.dumps(value)}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise RequestError(f"Invalid limit parameter: {json.dumps(value)}")


class Dispatcher:
    """Routes parsed requests to the provider gateway and builds response envelopes."""

    def __init__(self, gateway: Gateway, methods: Mapping[str, MethodSpec] = METHODS) -> None:
        self.gateway = gateway
        self.methods = methods

    def process_line(self, line: str) -> Optional[str]:
        """Return the serialized response for ``line``, or ``None`` for a blank line.

        Never raises: every failure becomes an error envelope.
        """

        if not line.strip():
            return None

        try:
            request = json.loads(line)
        except (ValueError, RecursionError) as exc:
            return self._serialize(self.error_envelope(None, f"Invalid JSON: {exc}"))

        request_id = _as_text(request.get("id")) if isinstance(request, dict) else None
        try:
            envelope = self.handle_request(request)
        except Exception as exc:
            LOGGER.exception("Unhandled error while processing request %s", request_id)
            envelope = self.error_envelope(request_id, f"Internal error: {exc}")
        return self._serialize(envelope)

    def handle_request(self, request: Any) -> Dict[str, Any]:
        """Dispatch a decoded request object and return its response envelope."""

        if not isinstance(request, dict):
            return self.error_envelope(None, "Missing method")

        request_id = _as_text(request.get("id"))
        if "method" not in request:
            return self.error_envelope(request_id, "Missing method")
        # A present but null method is named by its JSON text.
        method = json.dumps(None) if request["method"] is None else _as_text(request["method"])

        spec = self.methods.get(method)
        if spec is None:
            return self.error_envelope(request_id, f"Unknown method: {method}")

        params = request.get("params")
        if not isinstance(params, dict):
            params = {}

        try:
            symbol = _as_text(params.get("symbol"))
            if spec.requires_symbol and symbol is None:
                raise RequestError("Missing symbol parameter")
            limit = _parse_limit(params.get("limit")) if spec.accepts_limit else None
        except RequestError as exc:
            return self.error_envelope(request_id, str(exc))

        LOGGER.debug("Dispatching %s symbol=%s limit=%s", method, symbol, limit)
        result = self.gateway.fetch(spec.operation, symbol or "", limit)

        envelope: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": request_id}
        if "error" in result:
            envelope["error"] = result["error"]
        else:
            envelope["result"] = result
        return envelope

    @staticmethod
    def error_envelope(request_id: Optional[str], message: str) -> Dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"message": message}}

    def _serialize(self, envelope: Dict[str, Any]) -> str:
        try:
            return json.dumps(envelope, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            LOGGER.exception("Unable to serialize response for request %s", envelope.get("id"))
            fallback = self.error_envelope(envelope.get("id"), f"Internal error: {exc}")
            return json.dumps(fallback, separators=(",", ":"))


__all__ = ["Dispatcher", "JSONRPC_VERSION", "METHODS", "MethodSpec", "RequestError"]
