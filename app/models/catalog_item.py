"""CatalogItem model - reusable services and products."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntPK


class ItemKind(enum.Enum):
    """Line/catalog item kind. Used by reports to bucket revenue."""
    SERVICE = "service"
    PRODUCT = "product"


UNITS_OF_MEASURE = ('un', 'kg', 'm', 'm²', 'm³', 'l', 'cx', 'par', 'hr', 'dia', 'sem', 'mes')
DEFAULT_UNIT = 'un'


class CatalogItem(Base):
    """
    Saved service or product.

    Copied into a quote as a new line; later catalog edits never touch
    lines already on a quote.
    """

    __tablename__ = 'catalog_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigIntPK, ForeignKey('app_user.id'), nullable=False, index=True)
    kind = Column(String(10), nullable=False, default=ItemKind.SERVICE.value)
    description = Column(String(255), nullable=False)
    default_price = Column(Numeric(14, 2), nullable=False, default=0)
    default_cost = Column(Numeric(14, 2), nullable=False, default=0, server_default='0.00')
    unit = Column(String(8), nullable=False, default=DEFAULT_UNIT)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('AppUser')

    @property
    def code(self):
        """Display code, SVC<n> for services and PDT<n> for products."""
        prefix = 'PDT' if self.kind == ItemKind.PRODUCT.value else 'SVC'
        return f"{prefix}{self.id}"

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'kind': self.kind,
            'description': self.description,
            'default_price': str(self.default_price),
            'default_cost': str(self.default_cost or 0),
            'unit': self.unit,
        }

    def __repr__(self):
        return f"<CatalogItem(id={self.id}, kind='{self.kind}', description='{self.description}')>"
