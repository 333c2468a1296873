from models.base_model import Base
from models.db_storage import DBStorage
from models.user import User
from models.user_store import SQLUserStore

__all__ = ["Base", "DBStorage", "SQLUserStore", "User"]
