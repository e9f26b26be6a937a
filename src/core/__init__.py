from src.core.config import settings
from src.core.database import get_db
from src.core.security import pwd_context, create_access_token, verify_token

__all__ = ["settings", "get_db", "pwd_context", "create_access_token", "verify_token"]
