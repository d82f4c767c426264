from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.accounts.models.model_account import AccountModel
from app.utils.phone import phone_variants_for_lookup


class AccountRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, id: int) -> Optional[AccountModel]:
        return self.db.query(AccountModel).filter(AccountModel.id == id).first()

    def get_by_token(self, token: str) -> Optional[AccountModel]:
        return self.db.query(AccountModel).filter_by(super_token=token).first()

    def get_by_phone(self, phone: str) -> Optional[AccountModel]:
        candidates = phone_variants_for_lookup(phone)
        if not candidates:
            return None
        # one query for every accepted spelling (with/without '+', with/without country code)
        return (
            self.db.query(AccountModel)
            .filter(AccountModel.phone.in_(candidates))
            .first()
        )

    def create(self, **data) -> AccountModel:
        obj = AccountModel(**data)
        self.db.add(obj)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(obj)
        return obj

    def update(self, db_obj: AccountModel, **data) -> AccountModel:
        for k, v in data.items():
            # empty email is stored as NULL
            if k == "email" and isinstance(v, str) and v.strip() == "":
                v = None
            setattr(db_obj, k, v)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        self.db.refresh(db_obj)
        return db_obj
