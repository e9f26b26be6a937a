"""
Marketplace Module - Drone service jobs and operator offers.

Job posted → Operator offers → Offer accepted → Work completed
"""
from src.modules.marketplace.models import (
    Job,
    JobOffer,
    OfferMessage,
)
from src.modules.marketplace.router import offers_router, router

__all__ = [
    "Job",
    "JobOffer",
    "OfferMessage",
    "router",
    "offers_router",
]
