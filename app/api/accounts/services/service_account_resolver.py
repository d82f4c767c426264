from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.api.accounts.adapters.account_adapter import AccountAdapter
from app.api.accounts.contracts.account_contract import AccountIdentityDTO
from app.api.accounts.schemas.schema_account import AccountResolution
from app.database.db_connection import SessionLocal
from app.integrations.otp.client import OtpApiClient
from app.utils.logger import logger
from app.utils.phone import normalize_phone


@dataclass(slots=True)
class PendingIdentity:
    name: Optional[str]
    email: Optional[str]
    is_new_account: bool


class AccountResolver:
    """
    Decides between login and registration for a phone number and turns a
    verified phone into an account.

    Nothing is written before the OTP is verified: for a new phone the name
    and email typed at checkout are only remembered until
    `complete_verification` runs.
    """

    def __init__(
        self,
        otp_client: OtpApiClient | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.otp_client = otp_client or OtpApiClient()
        self._session_factory = session_factory
        self._pending: Dict[str, PendingIdentity] = {}

    def lookup(self, phone: str, name: str | None = None, email: str | None = None) -> AccountResolution:
        normalized = normalize_phone(phone)
        with self._session_factory() as db:
            existing = AccountAdapter(db).get_by_phone(normalized)

        is_new = existing is None
        self._pending[normalized] = PendingIdentity(name=name, email=email or None, is_new_account=is_new)
        logger.info("[Accounts] Phone %s resolved as %s", normalized, "registration" if is_new else "login")
        return AccountResolution(phone=normalized, requires_otp=True, is_new_account=is_new)

    async def dispatch_otp(self, phone: str) -> None:
        """Raises OtpProviderUnavailableError / OtpRejectedError from the provider."""
        await self.otp_client.send_checkout_otp(normalize_phone(phone))

    async def resolve(self, phone: str, name: str | None = None, email: str | None = None) -> AccountResolution:
        resolution = self.lookup(phone, name, email)
        await self.dispatch_otp(resolution.phone)
        return resolution

    async def verify_otp(self, phone: str, code: str) -> None:
        await self.otp_client.verify_checkout_otp(normalize_phone(phone), code)

    def complete_verification(self, phone: str) -> AccountIdentityDTO:
        """
        Materializes the identity of a verified phone.

        - New phone: the account is created with the remembered name/email.
        - Known phone: name/email are refreshed when different values were typed.
        """
        normalized = normalize_phone(phone)
        pending = self._pending.pop(normalized, None)

        with self._session_factory() as db:
            accounts = AccountAdapter(db)
            existing = accounts.get_by_phone(normalized)
            if existing is None:
                account = accounts.create(
                    phone=normalized,
                    name=pending.name if pending else None,
                    email=pending.email if pending else None,
                )
                logger.info("[Accounts] Account %s created for %s", account.id, normalized)
                return account

            changes = {}
            if pending:
                if pending.name and pending.name != existing.name:
                    changes["name"] = pending.name
                if pending.email and pending.email != existing.email:
                    changes["email"] = pending.email
            if not changes:
                return existing
            logger.info("[Accounts] Refreshing %s on account %s", ", ".join(changes), existing.id)
            return accounts.update(existing.id, **changes)

    def update_profile(
        self,
        account_id: int,
        name: str | None = None,
        email: str | None = None,
    ) -> Optional[AccountIdentityDTO]:
        changes = {k: v for k, v in {"name": name, "email": email}.items() if v is not None}
        with self._session_factory() as db:
            accounts = AccountAdapter(db)
            if not changes:
                return accounts.get_by_id(account_id)
            return accounts.update(account_id, **changes)
