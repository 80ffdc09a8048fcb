"""Typed schemas for the Alpha Vantage reports served over RPC.

Each provider record type is a pydantic model whose validation aliases map the
provider's field names and whose serialization aliases give the stable
camelCase names clients see. Missing or malformed provider values never fail a
row: text falls back to ``""``, numbers to ``0.0`` and counts to ``0``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Type

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel, to_pascal


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return ""
    return str(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        # Alpha Vantage reports missing figures as the string "None".
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_int(value: Any) -> int:
    return int(_to_float(value))


class ProviderRecord(BaseModel):
    """Base for one normalized provider row."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel, serialization_alias=to_camel),
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _default_scalars(cls, value: Any, info: ValidationInfo) -> Any:
        annotation = cls.model_fields[info.field_name].annotation
        if annotation is str:
            return _to_text(value)
        if annotation is float:
            return _to_float(value)
        if annotation is int:
            return _to_int(value)
        return value

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class CompanyOverview(ProviderRecord):
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_pascal, serialization_alias=to_camel),
    )

    asset_type: str = ""
    name: str = ""
    description: str = ""
    exchange: str = ""
    country: str = ""
    sector: str = ""
    industry: str = ""
    latest_quarter: str = ""


class NewsArticle(ProviderRecord):
    title: str = ""
    url: str = ""
    summary: str = ""
    time: str = Field("", validation_alias="time_published", serialization_alias="time")
    sentiment: str = Field("", validation_alias="overall_sentiment_label", serialization_alias="sentiment")
    source: str = ""
    tickers: List[str] = Field(
        default_factory=list, validation_alias="ticker_sentiment", serialization_alias="tickers"
    )

    @field_validator("tickers", mode="before")
    @classmethod
    def _extract_tickers(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        tickers: List[str] = []
        for entry in value:
            if isinstance(entry, dict) and entry.get("ticker"):
                tickers.append(str(entry["ticker"]))
        return tickers


class InsiderTransaction(ProviderRecord):
    transaction_date: str = Field(
        "", validation_alias="transaction_date", serialization_alias="transactionDate"
    )
    symbol: str = Field("", validation_alias="ticker", serialization_alias="symbol")
    executive_name: str = Field("", validation_alias="executive", serialization_alias="executiveName")
    executive_title: str = Field(
        "", validation_alias="executive_title", serialization_alias="executiveTitle"
    )
    security_type: str = Field("", validation_alias="security_type", serialization_alias="securityType")
    acquisition_or_disposal: str = Field(
        "", validation_alias="acquisition_or_disposal", serialization_alias="acquisitionOrDisposal"
    )
    shares: float = Field(0.0, validation_alias="shares", serialization_alias="shares")
    share_price: float = Field(0.0, validation_alias="share_price", serialization_alias="sharePrice")


class IncomeStatement(ProviderRecord):
    fiscal_date_ending: str = ""
    reported_currency: str = ""
    gross_profit: float = 0.0
    total_revenue: float = 0.0
    cost_of_revenue: float = 0.0
    cost_of_goods_and_services_sold: float = 0.0
    operating_income: float = 0.0
    selling_general_and_administrative: float = 0.0
    research_and_development: float = 0.0
    operating_expenses: float = 0.0
    investment_income_net: float = 0.0
    net_interest_income: float = 0.0
    interest_income: float = 0.0
    interest_expense: float = 0.0
    non_interest_income: float = 0.0
    other_non_operating_income: float = 0.0
    depreciation: float = 0.0
    depreciation_and_amortization: float = 0.0
    income_before_tax: float = 0.0
    income_tax_expense: float = 0.0
    interest_and_debt_expense: float = 0.0
    net_income_from_continuing_operations: float = 0.0
    comprehensive_income_net_of_tax: float = 0.0
    ebit: float = 0.0
    ebitda: float = 0.0
    net_income: float = 0.0


class EarningsEstimate(ProviderRecord):
    date: str = Field("", validation_alias="date", serialization_alias="date")
    estimate_average_eps: float = Field(
        0.0, validation_alias="eps_estimate_average", serialization_alias="estimateAverageEPS"
    )
    estimate_high_eps: float = Field(
        0.0, validation_alias="eps_estimate_high", serialization_alias="estimateHighEPS"
    )
    estimate_low_eps: float = Field(
        0.0, validation_alias="eps_estimate_low", serialization_alias="estimateLowEPS"
    )
    number_of_analysts: int = Field(
        0, validation_alias="eps_estimate_analyst_count", serialization_alias="numberOfAnalysts"
    )
    estimate_average_revenue: float = Field(
        0.0, validation_alias="revenue_estimate_average", serialization_alias="estimateAverageRevenue"
    )
    number_of_analysts_revenue: float = Field(
        0.0,
        validation_alias="revenue_estimate_analyst_count",
        serialization_alias="numberOfAnalystsRevenue",
    )


class BalanceSheet(ProviderRecord):
    fiscal_date_ending: str = ""
    reported_currency: str = ""
    total_assets: float = 0.0
    total_current_assets: float = 0.0
    cash_and_cash_equivalents_at_carrying_value: float = 0.0
    cash_and_short_term_investments: float = 0.0
    inventory: float = 0.0
    current_net_receivables: float = 0.0
    total_non_current_assets: float = 0.0
    property_plant_equipment: float = 0.0
    intangible_assets: float = 0.0
    goodwill: float = 0.0
    long_term_investments: float = 0.0
    short_term_investments: float = 0.0
    total_liabilities: float = 0.0
    total_current_liabilities: float = 0.0
    current_accounts_payable: float = 0.0
    short_term_debt: float = 0.0
    total_non_current_liabilities: float = 0.0
    long_term_debt: float = 0.0
    total_shareholder_equity: float = 0.0
    treasury_stock: float = 0.0
    retained_earnings: float = 0.0
    common_stock: float = 0.0
    common_stock_shares_outstanding: float = 0.0


@dataclass(frozen=True)
class ReportSpec:
    """How one list-shaped report is requested and normalized."""

    function: str
    label: str
    list_key: str
    collection: str
    record: Type[ProviderRecord]
    symbol_param: str = "symbol"


LIST_REPORTS: Dict[str, ReportSpec] = {
    "news": ReportSpec(
        function="NEWS_SENTIMENT",
        label="news",
        list_key="feed",
        collection="articles",
        record=NewsArticle,
        symbol_param="tickers",
    ),
    "insider_transactions": ReportSpec(
        function="INSIDER_TRANSACTIONS",
        label="insider transactions",
        list_key="data",
        collection="transactions",
        record=InsiderTransaction,
    ),
    "income_statement": ReportSpec(
        function="INCOME_STATEMENT",
        label="income statement",
        list_key="annualReports",
        collection="incomeStatements",
        record=IncomeStatement,
    ),
    "earnings_estimates": ReportSpec(
        function="EARNINGS_ESTIMATES",
        label="earnings estimates",
        list_key="estimates",
        collection="earningsEstimates",
        record=EarningsEstimate,
    ),
    "balance_sheet": ReportSpec(
        function="BALANCE_SHEET",
        label="balance sheet",
        list_key="annualReports",
        collection="balanceSheets",
        record=BalanceSheet,
    ),
}


__all__ = [
    "BalanceSheet",
    "CompanyOverview",
    "EarningsEstimate",
    "IncomeStatement",
    "InsiderTransaction",
    "LIST_REPORTS",
    "NewsArticle",
    "ProviderRecord",
    "ReportSpec",
]
