import logging
from datetime import date, timedelta
from typing import List

import pandas as pd

from portal.core.exceptions import ValidationFailedError
from portal.schemas.auth import SessionContext
from portal.schemas.financial import (
    CategoryTotal, EntryKind, FinancialEntry, FinancialEntryCreate, FinancialSummary, MonthlyPoint
)
from portal.services.backend_client import BackendClient

logger = logging.getLogger(__name__)

TIME_RANGES = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}


def summarize(entries: List[FinancialEntry], time_range: str, today: date) -> FinancialSummary:
    """Totals, margin, spending by category and a monthly series for a time range."""
    if time_range not in TIME_RANGES:
        raise ValidationFailedError(f"Unknown time range '{time_range}'")

    days = TIME_RANGES[time_range]
    if days is not None:
        since = today - timedelta(days=days)
        entries = [e for e in entries if e.date > since]

    if not entries:
        return FinancialSummary(
            time_range=time_range,
            total_revenue=0,
            total_spending=0,
            net_profit=0,
            profit_margin=0,
            spending_by_category=[],
            monthly=[],
        )

    df = pd.DataFrame([e.model_dump() for e in entries])
    df["kind"] = df["kind"].map(lambda k: k.value if isinstance(k, EntryKind) else k)
    df["category"] = df["category"].fillna("Other")
    df["month"] = pd.to_datetime(df["date"]).dt.strftime("%Y-%m")

    revenue = df[df["kind"] == EntryKind.REVENUE.value]
    spending = df[df["kind"] == EntryKind.SPENDING.value]
    total_revenue = float(revenue["amount"].sum())
    total_spending = float(spending["amount"].sum())
    net_profit = total_revenue - total_spending
    margin = round(net_profit / total_revenue * 100, 1) if total_revenue else 0

    by_category = (
        spending.groupby("category")["amount"].sum().sort_values(ascending=False)
    )

    monthly = (
        df.pivot_table(index="month", columns="kind", values="amount", aggfunc="sum", fill_value=0)
        .reindex(columns=[EntryKind.REVENUE.value, EntryKind.SPENDING.value], fill_value=0)
        .sort_index()
    )

    return FinancialSummary(
        time_range=time_range,
        total_revenue=total_revenue,
        total_spending=total_spending,
        net_profit=net_profit,
        profit_margin=margin,
        spending_by_category=[
            CategoryTotal(name=name, value=float(value)) for name, value in by_category.items()
        ],
        monthly=[
            MonthlyPoint(month=month, revenue=float(row[EntryKind.REVENUE.value]),
                         spending=float(row[EntryKind.SPENDING.value]))
            for month, row in monthly.iterrows()
        ],
    )


class FinancialService:
    def entries(self, client: BackendClient, session: SessionContext) -> List[FinancialEntry]:
        return [FinancialEntry.model_validate(e) for e in client.financial_entries(session)]

    def summary(
        self, client: BackendClient, session: SessionContext, time_range: str, today: date
    ) -> FinancialSummary:
        return summarize(self.entries(client, session), time_range, today)

    def add_entry(
        self, client: BackendClient, session: SessionContext, data: FinancialEntryCreate
    ) -> FinancialEntry:
        created = client.add_financial_entry(session, data.model_dump(mode="json"))
        logger.info(f"Financial {data.kind.value} entry of {data.amount} added")
        return FinancialEntry.model_validate(created)


# Singleton instance
financial_service = FinancialService()
