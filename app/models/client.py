"""Client model (address book)."""
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntPK


class PersonType(enum.Enum):
    """PF = individual (CPF), PJ = company (CNPJ)."""
    PF = "PF"
    PJ = "PJ"


class Client(Base):
    """Saved client (cliente)."""

    __tablename__ = 'client'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigIntPK, ForeignKey('app_user.id'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    person_type = Column(String(2), nullable=False, default=PersonType.PJ.value)
    document = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('AppUser')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'person_type': self.person_type,
            'document': self.document,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
