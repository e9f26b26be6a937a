from src.modules.fields.models import SavedField
from src.modules.fields.router import router

__all__ = ["SavedField", "router"]
