from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.database.db_connection import get_db
from app.api.accounts.contracts.account_contract import AccountIdentityDTO, IAccountContract
from app.api.accounts.adapters.account_adapter import AccountAdapter


def get_account_contract(db: Session = Depends(get_db)) -> IAccountContract:
    return AccountAdapter(db)


def get_account_by_super_token(
    x_super_token: str = Header(..., alias="X-Super-Token"),
    accounts: IAccountContract = Depends(get_account_contract),
) -> AccountIdentityDTO:
    account = accounts.get_by_token(x_super_token)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid customer token")
    return account
