from src.modules.pricing.models import CropType, RateCard, ServiceType, Terrain, TreatmentType
from src.modules.pricing.router import quotes_router, router

__all__ = [
    "RateCard",
    "ServiceType",
    "CropType",
    "TreatmentType",
    "Terrain",
    "router",
    "quotes_router",
]
