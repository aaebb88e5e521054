"""
Data module for backend models and synthetic data generation.
"""

from dbef.data.synthetic import SyntheticDataGenerator
from dbef.data.models import (
    BankAccount,
    Budget,
    CampaignSnapshot,
    DonationCampaign,
    Notification,
)

__all__ = [
    "SyntheticDataGenerator",
    "BankAccount",
    "Budget",
    "CampaignSnapshot",
    "DonationCampaign",
    "Notification",
]
