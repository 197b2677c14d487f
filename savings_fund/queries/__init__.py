"""Fund reporting package."""

from savings_fund.queries.reports import FundReporter, ReportError, month_bounds, top_saver

__all__ = ["FundReporter", "ReportError", "month_bounds", "top_saver"]
