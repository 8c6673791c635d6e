"""QuoteLine model for quote line items."""
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntPK
from app.models.catalog_item import ItemKind, DEFAULT_UNIT


class QuoteLine(Base):
    """
    Quote Line (Item do orçamento).

    `position` is the print order. It is maintained by the parent's
    ordering_list and only changes through explicit moves.
    """

    __tablename__ = 'quote_line'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    quote_id = Column(BigIntPK, ForeignKey('quote.id'), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    kind = Column(String(10), nullable=False, default=ItemKind.SERVICE.value)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False, default=1)
    unit = Column(String(8), nullable=True, default=DEFAULT_UNIT)
    unit_price = Column(Numeric(14, 2), nullable=False, default=0)
    cost = Column(Numeric(14, 2), nullable=True, default=0)

    # Relationships
    quote = relationship('Quote', back_populates='lines')

    def __repr__(self):
        return f"<QuoteLine(id={self.id}, quote_id={self.quote_id}, description='{self.description}', qty={self.quantity})>"
