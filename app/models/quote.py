"""Quote model for orçamentos."""
import enum
from datetime import date
from sqlalchemy import Column, String, Numeric, DateTime, Date, Text, ForeignKey
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntPK
from app.services.totals_service import compute_totals, compute_profit


class QuoteStatus(str, enum.Enum):
    """Quote status enum."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEGOTIATING = "negotiating"


# Statuses where the owner may no longer edit items or discount
FINALIZED_STATUSES = (QuoteStatus.APPROVED.value, QuoteStatus.REJECTED.value)


class Quote(Base):
    """
    Quote (Orçamento).

    Client details are stored as a snapshot so that editing the address book
    later does not rewrite quotes that were already sent.
    """

    __tablename__ = 'quote'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigIntPK, ForeignKey('app_user.id'), nullable=False, index=True)
    quote_number = Column(String(32), nullable=False)
    status = Column(String(20), nullable=False, default=QuoteStatus.PENDING.value)
    issued_on = Column(Date, nullable=False, default=date.today)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    # Client snapshot
    client_id = Column(BigIntPK, ForeignKey('client.id', ondelete='SET NULL'), nullable=True)
    client_name = Column(String(200), nullable=False, default='')
    client_person_type = Column(String(2), nullable=False, default='PJ')
    client_document = Column(String(20), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(30), nullable=True)
    client_address = Column(Text, nullable=True)

    # Discount (value is the source of truth, percent is kept in sync)
    discount_value = Column(Numeric(14, 2), nullable=False, default=0)
    discount_percent = Column(Numeric(7, 2), nullable=False, default=0)

    # Workflow
    signature = Column(Text, nullable=True)  # opaque artifact (data URL)
    client_feedback = Column(Text, nullable=True)
    client_display_name = Column(String(200), nullable=True)
    public_token = Column(String(64), nullable=False, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('AppUser')
    client = relationship('Client')
    lines = relationship(
        'QuoteLine',
        back_populates='quote',
        order_by='QuoteLine.position',
        collection_class=ordering_list('position'),
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}')>"

    @property
    def totals(self):
        """Subtotal, clamped discount and total for the current lines."""
        return compute_totals(self.lines, self.discount_value)

    @property
    def profit(self):
        """Internal-only cost/profit figures. Never render on client-facing views."""
        return compute_profit(self.lines, self.totals)

    @property
    def is_finalized(self):
        """Approved and rejected quotes are locked for editing."""
        return self.status in FINALIZED_STATUSES

    @property
    def is_expired(self):
        """Check if a still-open quote is past its due date (calculated, not stored)."""
        if self.status == QuoteStatus.PENDING.value and self.due_date:
            return date.today() > self.due_date
        return False
