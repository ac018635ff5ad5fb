"""
Analytics Module

Reporting windows, record fetching, pure aggregation and the reporting
service behind the admin and seller analytics queries.
"""
from .periods import ReportingWindow, resolve_window
from .scope import ReportScope, GLOBAL_SCOPE
from .fetcher import RecordFetcher
from .service import (
    PlatformReport,
    ReportingService,
    SellerRanking,
    SellerSalesReport,
    UserReport,
)

__all__ = [
    "ReportingWindow",
    "resolve_window",
    "ReportScope",
    "GLOBAL_SCOPE",
    "RecordFetcher",
    "PlatformReport",
    "ReportingService",
    "SellerRanking",
    "SellerSalesReport",
    "UserReport",
]
