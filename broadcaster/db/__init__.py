from .client import AppwriteClient, AppwriteError
from .helpers import Permission, Query, Role, unique_id

__all__ = [
    "AppwriteClient",
    "AppwriteError",
    "Permission",
    "Query",
    "Role",
    "unique_id",
]
