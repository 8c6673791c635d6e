"""Models package - exports all SQLAlchemy models."""
# Accounts
from app.models.app_user import AppUser
from app.models.company_profile import CompanyProfile, CompanyType

# Business Models
from app.models.client import Client, PersonType
from app.models.catalog_item import CatalogItem, ItemKind, UNITS_OF_MEASURE, DEFAULT_UNIT
from app.models.quote import Quote, QuoteStatus, FINALIZED_STATUSES
from app.models.quote_line import QuoteLine

__all__ = [
    # Accounts
    'AppUser', 'CompanyProfile', 'CompanyType',
    # Business
    'Client', 'PersonType',
    'CatalogItem', 'ItemKind', 'UNITS_OF_MEASURE', 'DEFAULT_UNIT',
    'Quote', 'QuoteStatus', 'FINALIZED_STATUSES', 'QuoteLine',
]
