from __future__ import annotations

from datetime import datetime, timezone

import pytest

from data_pipeline.alpha_vantage_client import AlphaVantageError
from data_pipeline.gateway import ProviderGateway


class DummyClient:
    def __init__(self, payload=None, exc: Exception | None = None):
        self.payload = payload if payload is not None else {}
        self.exc = exc
        self.calls: list[tuple[str, dict]] = []

    def fetch(self, function, **query):
        self.calls.append((function, query))
        if self.exc is not None:
            raise self.exc
        return self.payload


def _fixed_clock():
    return datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


def _feed(count: int) -> list[dict]:
    return [
        {
            "title": f"Article {index}",
            "url": f"https://news.example/{index}",
            "ticker_sentiment": [{"ticker": "IBM"}],
        }
        for index in range(count)
    ]


def test_stock_price_is_normalized():
    client = DummyClient({"Global Quote": {"01. symbol": "IBM", "05. price": "123.45"}})
    gateway = ProviderGateway(client, clock=_fixed_clock)

    result = gateway.get_stock_price("IBM")

    assert result == {
        "symbol": "IBM",
        "price": 123.45,
        "currency": "USD",
        "time": "2024-01-02T15:30:00+00:00",
    }
    assert client.calls == [("GLOBAL_QUOTE", {"symbol": "IBM"})]


def test_stock_price_time_is_parseable_with_default_clock():
    gateway = ProviderGateway(DummyClient({"Global Quote": {"05. price": "10"}}))

    result = gateway.get_stock_price("IBM")

    parsed = datetime.fromisoformat(result["time"])
    assert parsed.tzinfo is not None
    assert isinstance(result["price"], float)


@pytest.mark.parametrize("payload", [{}, {"Global Quote": {}}, {"Global Quote": None}])
def test_stock_price_without_quote_is_not_found(payload):
    gateway = ProviderGateway(DummyClient(payload))

    assert gateway.get_stock_price("ZZZZ") == {"error": "No data found for symbol: ZZZZ"}


def test_stock_price_with_unusable_price_is_an_error():
    gateway = ProviderGateway(DummyClient({"Global Quote": {"01. symbol": "IBM"}}))

    result = gateway.get_stock_price("IBM")

    assert result["error"].startswith("Error fetching stock price: Invalid price")


def test_transport_failure_is_reported_as_fetch_error():
    gateway = ProviderGateway(DummyClient(exc=AlphaVantageError("503 Server Error")))

    assert gateway.get_stock_price("IBM") == {"error": "Error fetching stock price: 503 Server Error"}
    assert gateway.get_stock_news("IBM") == {"error": "Error fetching news: 503 Server Error"}
    assert gateway.get_company_overview("IBM") == {"error": "Error fetching company overview: 503 Server Error"}
    assert gateway.get_insider_transactions("IBM") == {
        "error": "Error fetching insider transactions: 503 Server Error"
    }
    assert gateway.get_income_statement("IBM") == {"error": "Error fetching income statement: 503 Server Error"}
    assert gateway.get_earnings_estimates("IBM") == {
        "error": "Error fetching earnings estimates: 503 Server Error"
    }
    assert gateway.get_balance_sheet("IBM") == {"error": "Error fetching balance sheet: 503 Server Error"}


def test_news_respects_limit_and_uses_tickers_param():
    client = DummyClient({"feed": _feed(3)})
    gateway = ProviderGateway(client)

    result = gateway.get_stock_news("IBM", limit=2)

    assert result["success"] is True
    assert result["symbol"] == "IBM"
    assert result["count"] == 2
    assert [article["title"] for article in result["articles"]] == ["Article 0", "Article 1"]
    assert result["articles"][0]["tickers"] == ["IBM"]
    assert client.calls == [("NEWS_SENTIMENT", {"tickers": "IBM"})]


@pytest.mark.parametrize("limit, expected", [(None, 3), (1, 1), (3, 3), (10, 3), (0, 0), (-1, 0)])
def test_limit_caps_count(limit, expected):
    gateway = ProviderGateway(DummyClient({"feed": _feed(3)}))

    result = gateway.fetch("news", "IBM", limit)

    assert result["count"] == expected
    assert len(result["articles"]) == expected


def test_news_without_feed_is_not_found():
    gateway = ProviderGateway(DummyClient({"items": "0"}))

    assert gateway.get_stock_news("IBM") == {"error": "No news found for symbol: IBM"}


def test_article_without_sentiment_has_no_tickers():
    gateway = ProviderGateway(DummyClient({"feed": [{"title": "Quiet day"}]}))

    result = gateway.get_stock_news("IBM")

    assert result["articles"][0]["tickers"] == []


def test_company_overview_normalized_with_request_symbol():
    client = DummyClient({"Symbol": "IBM", "AssetType": "Common Stock", "Country": "USA"})
    gateway = ProviderGateway(client)

    result = gateway.get_company_overview("ibm")

    assert result["symbol"] == "ibm"
    assert result["assetType"] == "Common Stock"
    assert result["country"] == "USA"
    assert result["industry"] == ""
    assert client.calls == [("OVERVIEW", {"symbol": "ibm"})]


def test_empty_company_overview_is_not_found():
    gateway = ProviderGateway(DummyClient({}))

    assert gateway.get_company_overview("ZZZZ") == {"error": "No company overview found for symbol: ZZZZ"}


def test_insider_transactions_rows_default_bad_fields():
    payload = {
        "data": [
            {"transaction_date": "2024-01-02", "ticker": "IBM", "shares": "100", "share_price": "150.5"},
            {"transaction_date": None, "shares": None},
            "not-a-row",
        ]
    }
    gateway = ProviderGateway(DummyClient(payload))

    result = gateway.get_insider_transactions("IBM")

    assert result["count"] == 3
    first, second, third = result["transactions"]
    assert first["shares"] == 100.0
    assert first["sharePrice"] == 150.5
    assert second["transactionDate"] == ""
    assert second["shares"] == 0.0
    assert third["symbol"] == ""


def test_income_statement_and_balance_sheet_read_annual_reports():
    payload = {
        "symbol": "IBM",
        "annualReports": [
            {"fiscalDateEnding": "2023-12-31", "totalRevenue": "61860000000", "totalAssets": "135241000000"},
            {"fiscalDateEnding": "2022-12-31", "totalRevenue": "60530000000", "totalAssets": "127243000000"},
        ],
    }
    client = DummyClient(payload)
    gateway = ProviderGateway(client)

    income = gateway.get_income_statement("IBM", limit=1)
    balance = gateway.get_balance_sheet("IBM")

    assert income["count"] == 1
    assert income["incomeStatements"][0]["totalRevenue"] == 61860000000.0
    assert balance["count"] == 2
    assert balance["balanceSheets"][1]["totalAssets"] == 127243000000.0
    assert [call[0] for call in client.calls] == ["INCOME_STATEMENT", "BALANCE_SHEET"]


def test_missing_list_key_is_not_found():
    gateway = ProviderGateway(DummyClient({"symbol": "IBM"}))

    assert gateway.get_income_statement("IBM") == {"error": "No income statement found for symbol: IBM"}
    assert gateway.get_earnings_estimates("IBM") == {"error": "No earnings estimates found for symbol: IBM"}
    assert gateway.get_insider_transactions("IBM") == {"error": "No insider transactions found for symbol: IBM"}
    assert gateway.get_balance_sheet("IBM") == {"error": "No balance sheet found for symbol: IBM"}


def test_earnings_estimates_are_normalized():
    payload = {"estimates": [{"date": "2024-03-31", "eps_estimate_average": "1.62", "eps_estimate_analyst_count": "9"}]}
    gateway = ProviderGateway(DummyClient(payload))

    result = gateway.fetch("earnings_estimates", "IBM")

    assert result["count"] == 1
    assert result["earningsEstimates"][0]["estimateAverageEPS"] == 1.62
    assert result["earningsEstimates"][0]["numberOfAnalysts"] == 9


def test_unknown_operation_is_an_error():
    gateway = ProviderGateway(DummyClient({}))

    assert gateway.fetch("cash_flow", "IBM") == {"error": "Unknown operation: cash_flow"}


def test_repeated_requests_give_identical_results():
    gateway = ProviderGateway(DummyClient({"feed": _feed(2)}))

    assert gateway.get_stock_news("IBM", 1) == gateway.get_stock_news("IBM", 1)
