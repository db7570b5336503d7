import enum

from sqlalchemy import (
    Column, Integer, String, ForeignKey, Numeric, DateTime, Enum, JSON, Index, Text, func, text,
)
from sqlalchemy.orm import relationship

from swish.db.base import Base


class PurchaseStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


# A card may have at most one purchase in any of these states.
ACTIVE_PURCHASE_STATUSES = (PurchaseStatus.PENDING, PurchaseStatus.PAID, PurchaseStatus.SHIPPED)

_ACTIVE_WHERE = text("status IN ('PENDING', 'PAID', 'SHIPPED')")


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        Index(
            "uq_purchases_active_card",
            "card_id",
            unique=True,
            postgresql_where=_ACTIVE_WHERE,
            sqlite_where=_ACTIVE_WHERE,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    card_id = Column(Integer, ForeignKey("cards.id"), nullable=False, index=True)
    # captured at sale time, independent of the card's later price
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(PurchaseStatus, name="purchasestatus", create_type=True),
        default=PurchaseStatus.PENDING,
        nullable=False,
    )
    payment_method = Column(String(255), nullable=False)
    shipping_address = Column(JSON, nullable=False)
    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    buyer = relationship("User", foreign_keys=[buyer_id])
    seller = relationship("User", foreign_keys=[seller_id])
    card = relationship("Card", back_populates="purchases")

    def __repr__(self):
        return f"<Purchase(id={self.id}, card_id={self.card_id}, status={self.status})>"
