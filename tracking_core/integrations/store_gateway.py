# tracking_core/integrations/store_gateway.py
"""
Outbound HTTP to the upstream web stores.

All store API calls go through StoreGateway; services never call requests
directly. Pass a custom `session` in tests to intercept HTTP calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


ORDERS_PATH = "/erp-orders"
ORDERS_PARAMS = {"limit": 1000, "page": 1}


class StoreGatewayError(Exception):
    """Upstream store unreachable or answered with something unusable."""


class StoreGateway:
    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self._session = session
        self.timeout = timeout or getattr(settings, "TRACKING", {}).get("STORE_SYNC_TIMEOUT", 30)

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def fetch_orders(self, base_url: str) -> List[Dict[str, Any]]:
        url = f"{base_url.rstrip('/')}{ORDERS_PATH}"
        logger.info("Fetching store orders url=%s", url)
        try:
            resp = self.session.get(
                url,
                params=ORDERS_PARAMS,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreGatewayError(str(exc)) from exc

        if not resp.ok:
            raise StoreGatewayError(f"API responded with status: {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreGatewayError("API returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise StoreGatewayError("API returned an unexpected payload")
        orders = body.get("orders")
        if orders is None:
            return []
        if not isinstance(orders, list):
            raise StoreGatewayError("API returned an unexpected payload: orders is not a list")
        return orders


def _external_id(value) -> str:
    return "" if value is None else str(value).strip()


def flatten_orders(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Upstream order payloads -> ingestion rows. Product attributes may sit on
    the line item or on its nested `product`. A missing id stays empty so
    ingestion rejects the row.

    Raises StoreGatewayError when the payload does not have the expected shape.
    """
    rows: List[Dict[str, Any]] = []
    for order in orders:
        if not isinstance(order, dict):
            raise StoreGatewayError("API returned an unexpected payload: order is not an object")
        lines = order.get("orderItems") or []
        if not isinstance(lines, list):
            raise StoreGatewayError(
                f"API returned an unexpected payload: orderItems of order {order.get('id')} is not a list"
            )
        for line in lines:
            if not isinstance(line, dict):
                raise StoreGatewayError("API returned an unexpected payload: order item is not an object")
            product = line.get("product") or {}
            if not isinstance(product, dict):
                product = {}
            rows.append(
                {
                    "external_order_id": _external_id(order.get("id")),
                    "external_item_id": _external_id(line.get("id")),
                    "product_name": line.get("productName") or product.get("name") or None,
                    "sku": line.get("sku") or product.get("sku") or None,
                    "color": line.get("color") or product.get("color") or "",
                    "size": line.get("size") or product.get("size") or "",
                    "gender": line.get("gender") or product.get("gender") or "",
                    "product_image": (
                        line.get("productImage")
                        or product.get("productImage")
                        or product.get("image")
                        or ""
                    ),
                    "quantity": line.get("quantity"),
                    "is_leather": bool(line.get("isLeather") or product.get("isLeather")),
                    "is_pattern": bool(line.get("isPattern") or product.get("isPattern")),
                }
            )
    return rows
