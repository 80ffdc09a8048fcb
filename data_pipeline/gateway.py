"""Provider gateway: one Alpha Vantage call per operation, normalized or error."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .alpha_vantage_client import AlphaVantageClient, AlphaVantageError
from .reports import LIST_REPORTS, CompanyOverview, ReportSpec

LOGGER = logging.getLogger(__name__)

PRICE_CURRENCY = "USD"

OPERATIONS = ("stock_price", "company_overview", *LIST_REPORTS)

_Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def error_result(message: str) -> Dict[str, Any]:
    return {"error": message}


class ProviderGateway:
    """Fetches and normalizes Alpha Vantage reports.

    Every public operation returns either the normalized payload or
    ``{"error": message}``; nothing is raised to the caller.
    """

    def __init__(self, client: AlphaVantageClient, clock: _Clock = _utc_now) -> None:
        self.client = client
        self.clock = clock

    def fetch(self, operation: str, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        """Run the named operation for ``symbol``."""

        if operation == "stock_price":
            return self.get_stock_price(symbol)
        if operation == "company_overview":
            return self.get_company_overview(symbol)
        spec = LIST_REPORTS.get(operation)
        if spec is None:
            return error_result(f"Unknown operation: {operation}")
        return self._fetch_list_report(spec, symbol, limit)

    # ------------------------------------------------------------------
    def get_stock_price(self, symbol: str) -> Dict[str, Any]:
        try:
            payload = self.client.fetch("GLOBAL_QUOTE", symbol=symbol)
            quote = payload.get("Global Quote")
            if not isinstance(quote, dict) or not quote:
                return error_result(f"No data found for symbol: {symbol}")

            raw_price = quote.get("05. price")
            try:
                price = float(raw_price)
            except (TypeError, ValueError) as exc:
                raise AlphaVantageError(f"Invalid price {raw_price!r} in quote") from exc
            if not math.isfinite(price):
                raise AlphaVantageError(f"Invalid price {raw_price!r} in quote")

            return {
                "symbol": symbol,
                "price": price,
                "currency": PRICE_CURRENCY,
                "time": self.clock().isoformat(),
            }
        except Exception as exc:
            LOGGER.warning("Stock price lookup failed for %s: %s", symbol, exc)
            return error_result(f"Error fetching stock price: {exc}")

    def get_company_overview(self, symbol: str) -> Dict[str, Any]:
        try:
            payload = self.client.fetch("OVERVIEW", symbol=symbol)
            if not payload:
                return error_result(f"No company overview found for symbol: {symbol}")
            overview = CompanyOverview.model_validate(payload)
            return {"symbol": symbol, **overview.to_payload()}
        except Exception as exc:
            LOGGER.warning("Company overview lookup failed for %s: %s", symbol, exc)
            return error_result(f"Error fetching company overview: {exc}")

    def get_stock_news(self, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._fetch_list_report(LIST_REPORTS["news"], symbol, limit)

    def get_insider_transactions(self, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._fetch_list_report(LIST_REPORTS["insider_transactions"], symbol, limit)

    def get_income_statement(self, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._fetch_list_report(LIST_REPORTS["income_statement"], symbol, limit)

    def get_earnings_estimates(self, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._fetch_list_report(LIST_REPORTS["earnings_estimates"], symbol, limit)

    def get_balance_sheet(self, symbol: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return self._fetch_list_report(LIST_REPORTS["balance_sheet"], symbol, limit)

    # ------------------------------------------------------------------
    def _fetch_list_report(
        self,
        spec: ReportSpec,
        symbol: str,
        limit: Optional[int],
    ) -> Dict[str, Any]:
        try:
            payload = self.client.fetch(spec.function, **{spec.symbol_param: symbol})
            rows = payload.get(spec.list_key)
            if not isinstance(rows, list):
                return error_result(f"No {spec.label} found for symbol: {symbol}")

            records: list[Dict[str, Any]] = []
            for row in rows:
                if limit is not None and len(records) >= limit:
                    break
                source = row if isinstance(row, dict) else {}
                records.append(spec.record.model_validate(source).to_payload())

            return {
                "success": True,
                "symbol": symbol,
                "count": len(records),
                spec.collection: records,
            }
        except Exception as exc:
            LOGGER.warning("%s lookup failed for %s: %s", spec.label.capitalize(), symbol, exc)
            return error_result(f"Error fetching {spec.label}: {exc}")


__all__ = ["OPERATIONS", "PRICE_CURRENCY", "ProviderGateway", "error_result"]
