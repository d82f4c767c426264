from fastapi import APIRouter, Depends, HTTPException, status

from app.api.accounts.contracts.account_contract import AccountIdentityDTO, IAccountContract
from app.api.accounts.contracts.dependencies import get_account_by_super_token, get_account_contract
from app.api.accounts.schemas.schema_account import AccountOut, AccountUpdate
from app.api.checkout.services.validators import validate_email, validate_name
from app.utils.logger import logger

router = APIRouter(prefix="/api/accounts/client", tags=["Client - Accounts"])


@router.get("/me", response_model=AccountOut, status_code=status.HTTP_200_OK)
def read_current_account(account: AccountIdentityDTO = Depends(get_account_by_super_token)):
    logger.info(f"[Accounts] Get current {account.phone}")
    return AccountOut.model_validate(account)


@router.put("/me", response_model=AccountOut, status_code=status.HTTP_200_OK)
def update_current_account(
    data: AccountUpdate,
    account: AccountIdentityDTO = Depends(get_account_by_super_token),
    accounts: IAccountContract = Depends(get_account_contract),
):
    logger.info(f"[Accounts] Update {account.phone}")

    errors = {}
    if data.name is not None and (error := validate_name(data.name)):
        errors["name"] = error
    if data.email is not None and (error := validate_email(data.email)):
        errors["email"] = error
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors)

    changes = data.model_dump(exclude_none=True)
    if not changes:
        return AccountOut.model_validate(account)
    return AccountOut.model_validate(accounts.update(account.id, **changes))
