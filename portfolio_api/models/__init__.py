from portfolio_api.models.user import OAUTH_PROVIDERS, Gender, SystemRole, User

__all__ = [
    "Gender",
    "OAUTH_PROVIDERS",
    "SystemRole",
    "User",
]
