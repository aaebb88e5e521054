"""
DBEF platform gateway: donation campaigns, budgets, bank accounts,
notifications and KYC review over a remote REST backend.
"""

__version__ = "0.1.0"
