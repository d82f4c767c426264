import base64
import hashlib
import secrets

from pydantic import ConfigDict
from sqlalchemy import Column, DateTime, Index, Integer, String

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


def default_super_token():
    raw = secrets.token_bytes(32)
    hashed = hashlib.sha256(raw).digest()
    return base64.urlsafe_b64encode(hashed).rstrip(b'=').decode('ascii')


class AccountModel(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        Index("idx_accounts_email", "email"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    phone = Column(String(20), nullable=False, unique=True)  # natural key, stored normalized
    name = Column(String(100), nullable=True)
    email = Column(String(100), nullable=True)
    # set once when the account is created; identifies the customer on later requests
    super_token = Column(String, unique=True, nullable=False, default=default_super_token)

    created_at = Column(DateTime, default=now_trimmed, nullable=False)
    updated_at = Column(DateTime, default=now_trimmed, onupdate=now_trimmed, nullable=False)

    model_config = ConfigDict(from_attributes=True)
