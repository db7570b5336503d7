from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, Numeric, Boolean, DateTime, CheckConstraint, func,
)
from sqlalchemy.orm import relationship

from swish.db.base import Base


class Card(Base):
    __tablename__ = "cards"
    __table_args__ = (
        CheckConstraint(
            "(NOT is_for_sale AND price IS NULL) OR (is_for_sale AND price > 0)",
            name="ck_cards_price_matches_sale_state",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    player = Column(String(100), nullable=False)
    team = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    brand = Column(String(100), nullable=False)
    card_number = Column(String(50), nullable=True)
    condition = Column(String(50), nullable=False)
    rarity = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    is_for_trade = Column(Boolean, default=False, nullable=False)
    is_for_sale = Column(Boolean, default=False, nullable=False)
    price = Column(Numeric(10, 2), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="cards")
    purchases = relationship("Purchase", back_populates="card")

    def __repr__(self):
        return f"<Card(id={self.id}, name={self.name}, price={self.price})>"
