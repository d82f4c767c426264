import asyncio
import json

import httpx
import pytest

from app.api.accounts.models.model_account import AccountModel
from app.api.accounts.services.service_account_resolver import AccountResolver
from app.core.exceptions import OtpProviderUnavailableError, OtpRejectedError
from app.database.db_connection import open_session
from app.integrations.otp.client import OtpApiClient


def _resolver(transport) -> AccountResolver:
    return AccountResolver(OtpApiClient(base_url="http://otp.test/api", transport=transport))


def _count_accounts() -> int:
    db = open_session()
    try:
        return db.query(AccountModel).count()
    finally:
        db.close()


def _ok(request):
    return httpx.Response(200, json={"success": True})


def test_unknown_phone_is_a_registration_and_writes_nothing(recording_transport):
    transport = recording_transport(_ok)
    resolver = _resolver(transport)

    resolution = asyncio.run(resolver.resolve("+1 (555) 123-4567", "Ana Lima", "ana@example.com"))

    assert resolution.is_new_account is True
    assert resolution.requires_otp is True
    assert resolution.phone == "+15551234567"
    assert _count_accounts() == 0

    request = transport.requests[0]
    assert request.url.path == "/api/customer/send-checkout-otp/"
    assert json.loads(request.content) == {"phone": "+15551234567"}


def test_verification_creates_the_account_with_pending_details():
    resolver = _resolver(httpx.MockTransport(_ok))
    resolver.lookup("+15551234567", "Ana Lima", "ana@example.com")

    account = resolver.complete_verification("+15551234567")

    assert account.phone == "+15551234567"
    assert account.name == "Ana Lima"
    assert account.email == "ana@example.com"
    assert account.super_token
    assert _count_accounts() == 1


def test_known_phone_logs_in_with_any_spelling():
    resolver = _resolver(httpx.MockTransport(_ok))
    resolver.lookup("+15551234567", "Ana Lima", "ana@example.com")
    created = resolver.complete_verification("+15551234567")

    resolution = resolver.lookup("(555) 123-4567", "Ana Souza", "")
    assert resolution.is_new_account is False

    account = resolver.complete_verification("(555) 123-4567")
    assert account.id == created.id
    assert account.super_token == created.super_token
    assert account.name == "Ana Souza"
    assert account.email == "ana@example.com"
    assert _count_accounts() == 1


def test_update_profile():
    resolver = _resolver(httpx.MockTransport(_ok))
    resolver.lookup("5551112222", "Bob", None)
    account = resolver.complete_verification("5551112222")

    updated = resolver.update_profile(account.id, email="bob@example.com")
    assert updated.email == "bob@example.com"
    assert updated.name == "Bob"
    assert resolver.update_profile(9999, name="Nobody") is None


def test_provider_errors_reach_the_caller(down_transport):
    with pytest.raises(OtpProviderUnavailableError):
        asyncio.run(_resolver(down_transport).resolve("+15551234567"))

    server_error = httpx.MockTransport(lambda request: httpx.Response(502))
    with pytest.raises(OtpProviderUnavailableError):
        asyncio.run(_resolver(server_error).resolve("+15551234567"))

    rejecting = httpx.MockTransport(lambda request: httpx.Response(400, json={"message": "Number blocked"}))
    with pytest.raises(OtpRejectedError) as exc:
        asyncio.run(_resolver(rejecting).resolve("+15551234567"))
    assert exc.value.message == "Number blocked"
