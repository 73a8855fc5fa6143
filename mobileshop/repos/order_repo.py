# mobileshop/repos/order_repo.py
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from mobileshop.data.models.order import OrderModel
from mobileshop.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: list[OrderItemModel]) -> None:
        self.db.add_all(items)
        self.db.flush()

    def get_orders_by_user(self, user_id: str) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items))
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc())
            ).scalars().all()
        )

    def delete_order(self, order_id: str) -> bool:
        self.db.execute(delete(OrderItemModel).where(OrderItemModel.order_id == order_id))
        res = self.db.execute(delete(OrderModel).where(OrderModel.id == order_id))
        return res.rowcount > 0
