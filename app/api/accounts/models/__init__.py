from .model_account import AccountModel, default_super_token

__all__ = ["AccountModel", "default_super_token"]
