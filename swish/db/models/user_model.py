import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, JSON, func
from sqlalchemy.orm import relationship

from swish.db.base import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="userrole"), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    # bcrypt hash, NULL until the user opts into PIN protection
    security_pin = Column(String(255), nullable=True)
    # list of EncryptedPaymentMethod dicts; never holds a raw card number or CVV
    payment_methods = Column(JSON, nullable=False, default=list)
    shipping_address = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cards = relationship("Card", back_populates="owner", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
