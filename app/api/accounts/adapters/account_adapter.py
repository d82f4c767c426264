from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.api.accounts.contracts.account_contract import AccountIdentityDTO, IAccountContract
from app.api.accounts.models.model_account import AccountModel
from app.api.accounts.repositories.repo_account import AccountRepository


class AccountAdapter(IAccountContract):
    def __init__(self, db: Session):
        self.repo = AccountRepository(db)

    @staticmethod
    def _to_dto(obj: Optional[AccountModel]) -> Optional[AccountIdentityDTO]:
        if obj is None:
            return None
        return AccountIdentityDTO.model_validate(obj)

    def get_by_phone(self, phone: str) -> Optional[AccountIdentityDTO]:
        return self._to_dto(self.repo.get_by_phone(phone))

    def get_by_id(self, account_id: int) -> Optional[AccountIdentityDTO]:
        return self._to_dto(self.repo.get_by_id(account_id))

    def get_by_token(self, token: str) -> Optional[AccountIdentityDTO]:
        return self._to_dto(self.repo.get_by_token(token))

    def create(self, phone: str, name: Optional[str], email: Optional[str]) -> AccountIdentityDTO:
        return self._to_dto(self.repo.create(phone=phone, name=name, email=email or None))

    def update(self, account_id: int, **fields) -> Optional[AccountIdentityDTO]:
        obj = self.repo.get_by_id(account_id)
        if obj is None:
            return None
        return self._to_dto(self.repo.update(obj, **fields))
