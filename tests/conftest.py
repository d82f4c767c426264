import os
import tempfile

# Must run before anything under app/ is imported: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_SAMPLE_MENU"] = "true"
os.environ["CHECKOUT_SUCCESS_CLOSE_DELAY_SECONDS"] = "0"
os.environ["LOG_DIR"] = os.path.join(tempfile.gettempdir(), "storefront-test-logs")
os.environ["PRICING_API_BASE_URL"] = "http://pricing.test/api"
os.environ["OTP_API_BASE_URL"] = "http://otp.test/api"
os.environ["ORDER_WEBHOOK_SECRET"] = ""

import httpx
import pytest

from app.database.db_connection import open_session
from app.database.init_db import initialize_database


@pytest.fixture(scope="session", autouse=True)
def database():
    initialize_database()
    yield


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    from app.api.accounts.models.model_account import AccountModel
    from app.api.orders.models.model_order import OrderModel

    db = open_session()
    try:
        db.query(OrderModel).delete()
        db.query(AccountModel).delete()
        db.commit()
    finally:
        db.close()


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def down_transport():
    """Transport whose every request fails at the network level."""
    return httpx.MockTransport(unreachable)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def recording_transport():
    return RecordingTransport
