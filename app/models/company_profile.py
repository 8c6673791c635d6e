"""CompanyProfile model - the business issuing quotes."""
import enum
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntPK


class CompanyType(enum.Enum):
    """Legal nature of the business."""
    PESSOA_FISICA = "pessoa_fisica"
    PESSOA_JURIDICA = "pessoa_juridica"


class CompanyProfile(Base):
    """
    Company profile (one per owner).

    Filled during onboarding and edited from settings. Its data is printed
    on every quote header.
    """

    __tablename__ = 'company_profile'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigIntPK, ForeignKey('app_user.id'), nullable=False, unique=True)
    razao_social = Column(String(200), nullable=False)
    nome_fantasia = Column(String(200), nullable=False)
    document = Column(String(20), nullable=False)  # CPF or CNPJ
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    address = Column(Text, nullable=True)
    brand_color = Column(String(16), nullable=True)
    company_type = Column(String(20), nullable=False, default=CompanyType.PESSOA_JURIDICA.value)
    logo_url = Column(String(500), nullable=True)
    show_signature = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('AppUser', back_populates='company')

    @property
    def display_name(self):
        return self.nome_fantasia or self.razao_social

    def to_dict(self):
        return {
            'id': self.id,
            'razao_social': self.razao_social,
            'nome_fantasia': self.nome_fantasia,
            'document': self.document,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'brand_color': self.brand_color,
            'company_type': self.company_type,
            'logo_url': self.logo_url,
            'show_signature': self.show_signature,
        }

    def __repr__(self):
        return f"<CompanyProfile(id={self.id}, name='{self.display_name}')>"
