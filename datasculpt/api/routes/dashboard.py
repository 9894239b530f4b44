"""
Dashboard Route

Precomputed dashboard summary so the web client renders immediately. The
figures are fixed and do not depend on the selected database.
"""

import logging
from typing import Any

from fastapi import APIRouter, Query

logger = logging.getLogger(__name__)

router = APIRouter()

_DIVISION_REVENUE = [
    ("Lyra Division", 6500000),
    ("EBO Division", 5800000),
    ("Ecom Division", 5200000),
    ("Inferno Division", 4800000),
    ("Nitro Division", 2200000),
]

_TOP_PRODUCTS = [
    ("MAT001", "Cotton Premium T-Shirt", 12500, 1250000),
    ("MAT002", "Denim Classic Jeans", 8900, 1780000),
    ("MAT003", "Polo Premium Shirt", 7500, 1125000),
    ("MAT004", "Casual Comfort Pants", 6200, 930000),
    ("MAT005", "Sports Active Wear", 5800, 870000),
]

_MONTHLY_REVENUE = [
    ("2024-07", 2100000),
    ("2024-08", 2250000),
    ("2024-09", 2180000),
    ("2024-10", 2320000),
    ("2024-11", 2450000),
    ("2024-12", 2380000),
]

_DIVISION_SHARE = [
    ("Lyra Division", 26.5),
    ("EBO Division", 23.7),
    ("Ecom Division", 21.2),
    ("Inferno Division", 19.6),
    ("Nitro Division", 9.0),
]


def dashboard_payload() -> dict[str, Any]:
    """Build the fixed dashboard summary."""
    return {
        "totalRevenue": 24500000,
        "totalOrders": 12450,
        "totalProducts": 850,
        "totalCustomers": 890,
        "revenueByState": [{"state": name, "revenue": value} for name, value in _DIVISION_REVENUE],
        "topProducts": [
            {"id": product_id, "name": name, "totalSales": sales, "revenue": revenue}
            for product_id, name, sales, revenue in _TOP_PRODUCTS
        ],
        "charts": [
            {
                "id": "revenue-by-division",
                "title": "Revenue by Division",
                "type": "bar",
                "data": [{"name": name, "value": value} for name, value in _DIVISION_REVENUE],
            },
            {
                "id": "monthly-trends",
                "title": "Monthly Revenue Trends",
                "type": "line",
                "data": [{"name": name, "value": value} for name, value in _MONTHLY_REVENUE],
            },
            {
                "id": "revenue-distribution",
                "title": "Revenue Distribution by Division",
                "type": "pie",
                "data": [{"name": name, "value": value} for name, value in _DIVISION_SHARE],
            },
        ],
    }


@router.get("/dashboard-data")
async def dashboard_data(
    database_type: str = Query(default="mysql", alias="type"),
) -> dict[str, Any]:
    """Fixed dashboard summary."""
    logger.info(f"Dashboard data requested for database type: {database_type}")
    return dashboard_payload()
