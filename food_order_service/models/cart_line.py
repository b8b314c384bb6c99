from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


class CartLine(Base):
    __tablename__ = "cart_lines"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_lines_quantity_positive"),
        UniqueConstraint("cart_id", "menu_item_id", name="uq_cart_lines_cart_item"),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    menu_item_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)

    # Связь с корзиной
    cart = relationship("Cart", back_populates="lines")
