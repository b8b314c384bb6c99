from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base


class OrderLine(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, ForeignKey("orders.id"), nullable=False, index=True)

    # Информация о блюде на момент заказа
    menu_item_id = Column(String, nullable=False)
    name = Column(String(255), nullable=False)

    # Количество и цены
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # Цена за единицу на момент заказа
    line_total = Column(Numeric(10, 2), nullable=False)  # quantity * unit_price

    # Связи
    order = relationship("Order", back_populates="lines")
