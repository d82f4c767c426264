from app.api.accounts.models.model_account import AccountModel
from app.database.domain.base import DomainInitializer


class AccountsInitializer(DomainInitializer):

    def get_domain_name(self) -> str:
        return "accounts"

    def get_tables(self):
        return [AccountModel.__table__]
