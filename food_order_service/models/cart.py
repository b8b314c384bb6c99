from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, nullable=False, unique=True, index=True)  # одна корзина на покупателя
    restaurant_id = Column(String, nullable=True)  # None, пока корзина пуста
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Позиции корзины в порядке добавления
    lines = relationship(
        "CartLine",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartLine.id"
    )

    # Оптимистическая блокировка: UPDATE ... WHERE version = :old
    __mapper_args__ = {"version_id_col": version}

    def find_line(self, line_id: int):
        return next((line for line in self.lines if line.id == line_id), None)

    def find_line_for_item(self, menu_item_id: str):
        return next((line for line in self.lines if line.menu_item_id == menu_item_id), None)

    def clear(self):
        self.lines.clear()
        self.restaurant_id = None
