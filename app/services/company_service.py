"""Company profile service (onboarding and settings)."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models import CompanyProfile, CompanyType
from app.utils.validation import only_digits

logger = logging.getLogger(__name__)

COMPANY_FIELDS = (
    'razao_social', 'nome_fantasia', 'document', 'email', 'phone', 'address',
    'brand_color', 'company_type', 'logo_url', 'show_signature',
)


def get_company(session: Session, owner_id: int) -> Optional[CompanyProfile]:
    """The owner's company profile, or None before onboarding."""
    return session.query(CompanyProfile).filter_by(owner_id=owner_id).first()


def save_company(session: Session, owner_id: int, data: Dict[str, Any]) -> CompanyProfile:
    """Create or update the owner's company profile with the given fields."""
    company = get_company(session, owner_id)
    created = company is None
    if created:
        company = CompanyProfile(owner_id=owner_id, company_type=CompanyType.PESSOA_JURIDICA.value)
        session.add(company)

    try:
        for field in COMPANY_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if isinstance(value, str):
                value = value.strip() or None
            if field == 'document' and value:
                value = only_digits(value)
            if field == 'company_type':
                value = value or CompanyType.PESSOA_JURIDICA.value
            if field == 'show_signature':
                value = bool(value)
            setattr(company, field, value)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Company profile {'created' if created else 'updated'} for owner {owner_id}")
    return company
