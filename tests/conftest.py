"""Pytest configuration and fixtures for allocation engine tests."""

import json
from pathlib import Path
from typing import Any

import pytest

from allocation_engine.core.models import OrderFinancials, PaymentInfo


@pytest.fixture
def order_totals() -> OrderFinancials:
    """Totals of a typical reupholstery order (profit derived)."""
    return OrderFinancials(revenue=1000.0, cost=400.0)


@pytest.fixture
def payment_info() -> PaymentInfo:
    """Deposit paid on the order."""
    return PaymentInfo(amount_paid=200.0)


@pytest.fixture
def current_allocation() -> dict[str, Any]:
    """Allocation written by the current dialog (1-indexed months)."""
    return {
        "allocations": [
            {"month": 3, "year": 2024, "percentage": 50, "revenue": 500.0, "cost": 200.0, "profit": 300.0},
            {"month": 4, "year": 2024, "percentage": 50, "revenue": 500.0, "cost": 200.0, "profit": 300.0},
        ],
        "appliedAt": "2024-04-02T10:15:00.000Z",
    }


@pytest.fixture
def legacy_allocation() -> dict[str, Any]:
    """Allocation written by the old workshop dialog (0-indexed months)."""
    return {
        "method": "manual",
        "allocations": [
            {"month": 11, "year": 2023, "percentage": 40, "monthKey": "2023-11"},
            {"month": 0, "year": 2024, "percentage": 60, "monthKey": "2024-00"},
        ],
        "appliedAt": {"seconds": 1709251200, "nanoseconds": 0},
        "originalRevenue": 1000,
        "originalCost": 400,
        "originalProfit": 600,
        "dateRange": {"startDate": {"seconds": 1701388800}, "endDate": {"seconds": 1706659200}},
        "recalculatedAt": {"seconds": 1709251200},
    }


@pytest.fixture
def sample_orders(current_allocation: dict[str, Any]) -> list[dict[str, Any]]:
    """Exported order documents."""
    return [
        {
            "id": "100042",
            "customer": "Sofa reupholstery",
            "financials": {"revenue": 1000, "cost": 400},
            "paymentData": {"amountPaid": 200},
            "orderDetails": {"startDate": "2024-03-18", "endDate": "2024-04-12"},
            "allocation": current_allocation,
        },
        {
            "id": "100043",
            "customer": "Dining chairs",
            "financials": {"revenue": 600, "cost": 250, "profit": 350},
            "paymentData": {"amountPaid": 600},
            "orderDetails": {"startDate": {"seconds": 1714521600}, "endDate": {"seconds": 1717113600}},
        },
    ]


@pytest.fixture
def orders_file(tmp_path: Path, sample_orders: list[dict[str, Any]]) -> Path:
    """Order export written as ``{"orders": [...]}``."""
    path = tmp_path / "orders.json"
    path.write_text(json.dumps({"orders": sample_orders}), encoding="utf-8")
    return path
