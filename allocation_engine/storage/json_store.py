"""
JSON-based storage for exported order documents.

The live orders sit in a hosted document store; this module works on a JSON
export of that collection so allocations can be inspected and re-applied
offline. The file holds either a list of orders or ``{"orders": [...]}``;
each order has an ``id`` and may carry ``financials``, ``paymentData``,
``orderDetails`` and ``allocation``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..allocation.timestamps import coerce_datetime
from ..core.exceptions import OrderDataError, OrderNotFoundError
from ..core.models import CanonicalAllocation

logger = logging.getLogger(__name__)


class OrderStore:
    """
    File-backed access to exported orders.

    Usage:
        store = OrderStore(Path("orders.json"))
        order = store.get("100042")
        store.save_allocation("100042", allocation)
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._wrapped = False
        self._orders: Optional[List[Dict[str, Any]]] = None

    def _read(self) -> List[Dict[str, Any]]:
        if self._orders is not None:
            return self._orders

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise OrderDataError("*", f"order export not found: {self.path}")
        except json.JSONDecodeError as e:
            raise OrderDataError("*", f"invalid JSON in {self.path}: {e}")

        if isinstance(data, dict) and isinstance(data.get("orders"), list):
            self._wrapped = True
            orders = data["orders"]
        elif isinstance(data, list):
            orders = data
        else:
            raise OrderDataError("*", "expected a list of orders or an 'orders' list")

        for index, order in enumerate(orders):
            if not isinstance(order, dict) or "id" not in order:
                raise OrderDataError(str(index), "order must be an object with an 'id'")

        self._orders = orders
        logger.debug(f"Loaded {len(orders)} orders from {self.path}")
        return orders

    def _write(self) -> None:
        orders = self._read()
        payload: Any = {"orders": orders} if self._wrapped else orders
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    def list_ids(self) -> List[str]:
        """List ids of all exported orders."""
        return [str(order["id"]) for order in self._read()]

    def load_all(self) -> List[Dict[str, Any]]:
        """Return all order documents."""
        return list(self._read())

    def exists(self, order_id: str) -> bool:
        return str(order_id) in self.list_ids()

    def get(self, order_id: str) -> Dict[str, Any]:
        """Return one order document."""
        for order in self._read():
            if str(order["id"]) == str(order_id):
                return order
        raise OrderNotFoundError(str(order_id), str(self.path))

    def service_dates(self, order_id: str) -> tuple[Any, Any]:
        """Return the (start, end) service datetimes of an order, or None each."""
        details = self.get(order_id).get("orderDetails") or {}
        return (
            coerce_datetime(details.get("startDate")),
            coerce_datetime(details.get("endDate")),
        )

    def save_allocation(self, order_id: str, allocation: CanonicalAllocation) -> Path:
        """
        Replace the stored allocation of an order and rewrite the export.

        Args:
            order_id: Order to update
            allocation: Newly built allocation; any previous one is discarded

        Returns:
            Path to the rewritten file
        """
        order = self.get(order_id)
        order["allocation"] = allocation.to_document()
        self._write()
        logger.info(f"Saved allocation for order {order_id} to {self.path}")
        return self.path
