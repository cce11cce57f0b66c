"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory Autopay credentials for settings validation
os.environ.setdefault("AUTOPAY__GENERAL_KEY", "test-general-key")
os.environ.setdefault("AUTOPAY__SERVICE_ID", "100")
os.environ.setdefault("AUTOPAY__AUTOPAY_URL", "https://pay-accept.test")
# Importing the app builds the engine; keep it off Postgres
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///./test_autopay.db")

from decimal import Decimal
from typing import Optional

import httpx
import pytest

from core.settings import AutopaySettings
from domain.common.exceptions import CartNotFoundException, OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Cart, Order
from domain.order.repository import CartRepository, OrderRepository
from infrastructure.external.payments.autopay_processor import AutopayPaymentProcessor
from infrastructure.external.payments.gateway_client import AutopayGatewayClient


SERVICE_ID = "100"
GENERAL_KEY = "test-general-key"
AUTOPAY_URL = "https://pay-accept.test"


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, orders: dict[str, Order]):
        self.orders = orders
        self.updates: list[Order] = []

    async def get_by_cart_id(self, cart_id: str) -> Optional[Order]:
        return self.orders.get(cart_id)

    async def update(self, order: Order) -> Order:
        if order.cart_id not in self.orders:
            raise OrderNotFoundException(order.cart_id)
        self.updates.append(order)
        self.orders[order.cart_id] = order
        return order


class InMemoryCartRepository(CartRepository):
    def __init__(self, carts: dict[str, Cart]):
        self.carts = carts

    async def get_by_id(self, cart_id: str) -> Optional[Cart]:
        return self.carts.get(cart_id)

    async def update_payment_session(self, cart_id: str, session_data: dict) -> Cart:
        cart = self.carts.get(cart_id)
        if cart is None:
            raise CartNotFoundException(cart_id)
        cart.payment_session = session_data
        return cart


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Shares one order/cart store across units; counts commits and rollbacks."""

    def __init__(self, store: "InMemoryStore", *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self._store = store
        self.order_repository = store.orders
        self.cart_repository = store.carts

    async def commit(self) -> None:
        self._committed = True
        self._store.commits += 1

    async def rollback(self) -> None:
        self._store.rollbacks += 1


class InMemoryStore:
    def __init__(self):
        self.orders = InMemoryOrderRepository({})
        self.carts = InMemoryCartRepository({})
        self.commits = 0
        self.rollbacks = 0

    def add_order(self, order: Order) -> Order:
        self.orders.orders[order.cart_id] = order
        return order

    def add_cart(self, cart: Cart) -> Cart:
        self.carts.carts[cart.id] = cart
        return cart

    def uow_factory(self, *, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self, readonly=readonly)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def autopay_settings() -> AutopaySettings:
    return AutopaySettings(general_key=GENERAL_KEY, service_id=SERVICE_ID, autopay_url=AUTOPAY_URL)


@pytest.fixture
def make_processor(autopay_settings):
    """Build a processor whose HTTP calls go to `handler`."""

    def _make(handler=None) -> AutopayPaymentProcessor:
        transport = httpx.MockTransport(handler) if handler is not None else None
        client = AutopayGatewayClient(AUTOPAY_URL, transport=transport)
        return AutopayPaymentProcessor(autopay_settings, client)

    return _make


@pytest.fixture
def processor(make_processor) -> AutopayPaymentProcessor:
    return make_processor()


@pytest.fixture
def pending_order() -> Order:
    return Order(id="order_1", cart_id="c1", total=Decimal("99.50"), currency_code="PLN")
