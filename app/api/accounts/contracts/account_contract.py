from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AccountIdentityDTO(BaseModel):
    id: int
    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    super_token: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IAccountContract(ABC):
    """Account store as seen by the checkout and order contexts."""

    @abstractmethod
    def get_by_phone(self, phone: str) -> Optional[AccountIdentityDTO]:
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, account_id: int) -> Optional[AccountIdentityDTO]:
        raise NotImplementedError

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[AccountIdentityDTO]:
        raise NotImplementedError

    @abstractmethod
    def create(self, phone: str, name: Optional[str], email: Optional[str]) -> AccountIdentityDTO:
        raise NotImplementedError

    @abstractmethod
    def update(self, account_id: int, **fields) -> Optional[AccountIdentityDTO]:
        """Updates the given fields; returns None when the account does not exist."""
        raise NotImplementedError
