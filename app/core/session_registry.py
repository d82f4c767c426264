"""
Per-session storefront services.

The cart, its price calculation and the checkout flow live in memory for
the lifetime of a browser session. Sessions are identified by the
`X-Session-Id` header and kept in a registry stored on `app.state`.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.accounts.services.service_account_resolver import AccountResolver
from app.api.cart.services.service_cart_calculation import CartCalculationService
from app.api.cart.services.service_cart_ledger import CartLedger
from app.api.checkout.services.service_checkout import CheckoutStateMachine
from app.config.settings import SESSION_MAX_IDLE_SECONDS
from app.database.db_connection import SessionLocal
from app.integrations.otp.client import OtpApiClient
from app.integrations.pricing.client import PricingApiClient
from app.utils.logger import logger

PURGE_INTERVAL_SECONDS = 60


@dataclass
class StorefrontSession:
    session_id: str
    ledger: CartLedger
    calculation: CartCalculationService
    checkout: CheckoutStateMachine
    last_seen: float = field(default_factory=time.monotonic)


class SessionRegistry:

    def __init__(
        self,
        pricing_client: PricingApiClient | None = None,
        otp_client: OtpApiClient | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
        max_idle_seconds: float = SESSION_MAX_IDLE_SECONDS,
    ):
        self.pricing_client = pricing_client or PricingApiClient()
        self.otp_client = otp_client or OtpApiClient()
        self.session_factory = session_factory
        self.max_idle_seconds = max_idle_seconds
        self._sessions: Dict[str, StorefrontSession] = {}
        self._lock = threading.Lock()
        self._last_purge = time.monotonic()

    def _build(self, session_id: str) -> StorefrontSession:
        ledger = CartLedger()
        calculation = CartCalculationService(self.pricing_client)
        resolver = AccountResolver(self.otp_client, session_factory=self.session_factory)
        checkout = CheckoutStateMachine(ledger, calculation, resolver)
        return StorefrontSession(session_id, ledger, calculation, checkout)

    def get(self, session_id: str) -> Optional[StorefrontSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> StorefrontSession:
        now = time.monotonic()
        if now - self._last_purge > PURGE_INTERVAL_SECONDS:
            self.purge_idle(self.max_idle_seconds)

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self._build(session_id)
                self._sessions[session_id] = session
                logger.debug("[Session] Opened %s", session_id)
            session.last_seen = now
            return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.checkout.close()
        return True

    def purge_idle(self, max_idle_seconds: float) -> int:
        """Drops sessions not used for `max_idle_seconds`. Returns how many were dropped."""
        now = time.monotonic()
        limit = now - max_idle_seconds
        with self._lock:
            self._last_purge = now
            stale = [sid for sid, s in self._sessions.items() if s.last_seen < limit]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info("[Session] Purged %s idle sessions", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)


def get_storefront_session(
    request: Request,
    x_session_id: str = Header(..., alias="X-Session-Id", min_length=1, max_length=128),
) -> StorefrontSession:
    registry: SessionRegistry | None = getattr(request.app.state, "session_registry", None)
    if registry is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "Session registry not initialized")
    return registry.get_or_create(x_session_id)
