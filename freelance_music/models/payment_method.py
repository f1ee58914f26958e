# freelance_music/models/payment_method.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from freelance_music.db.base import Base


class PaymentMethod(Base):
    """Card or bank account on file. Only the last four digits are stored."""

    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # credit_card / bank_account
    method_type = Column(String(20), nullable=False)

    card_brand = Column(String(20), nullable=True)
    card_last_four = Column(String(4), nullable=True)
    card_exp_month = Column(Integer, nullable=True)
    card_exp_year = Column(Integer, nullable=True)
    cardholder_name = Column(String(100), nullable=True)

    bank_name = Column(String(100), nullable=True)
    account_holder_name = Column(String(100), nullable=True)
    routing_last_four = Column(String(4), nullable=True)
    account_last_four = Column(String(4), nullable=True)

    is_primary = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="payment_methods")

    @property
    def masked_number(self) -> str:
        last_four = self.card_last_four or self.account_last_four or ""
        return f"****{last_four}"

    def __repr__(self):
        return f"<PaymentMethod {self.method_type} {self.masked_number}>"
