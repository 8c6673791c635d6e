"""
Authentication service for owner accounts.

Local email/password accounts. The Flask session only carries `user_id`;
anything that can put a verified user id there can stand in for this module.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, UnauthorizedError
from app.models import AppUser

logger = logging.getLogger(__name__)


def _normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


def register_user(session: Session, email: str, password: str, full_name: Optional[str] = None) -> AppUser:
    """
    Create a local account.

    Raises:
        BusinessLogicError: email already registered
    """
    email = _normalize_email(email)
    if session.query(AppUser).filter_by(email=email).first():
        raise BusinessLogicError('Este email já está cadastrado.', status_code=409)

    try:
        user = AppUser(email=email, full_name=(full_name or '').strip() or None, active=True)
        user.set_password(password)
        session.add(user)
        session.commit()
        logger.info(f"New user registered: {email}")
        return user
    except IntegrityError:
        # Concurrent registration with the same email
        session.rollback()
        raise BusinessLogicError('Este email já está cadastrado.', status_code=409)


def authenticate(session: Session, email: str, password: str) -> AppUser:
    """
    Check credentials and return the active user.

    Raises:
        UnauthorizedError: unknown email, wrong password or inactive account
    """
    email = _normalize_email(email)
    user = session.query(AppUser).filter_by(email=email).first()

    if not user or not user.check_password(password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError('Email ou senha inválidos.')

    if not user.active:
        logger.warning(f"Login attempt on inactive account {email}")
        raise UnauthorizedError('Conta desativada.')

    logger.info(f"User logged in: {email}")
    return user
