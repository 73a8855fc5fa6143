# mobileshop/repos/cart_repo.py
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from mobileshop.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: str) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel).where(CartItemModel.user_id == user_id)
            ).scalars().unique().all()
        )

    def get_cart_item(self, line_id: str) -> CartItemModel | None:
        return self.db.get(CartItemModel, line_id)

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        self.db.refresh(item)
        return item

    def update_quantity(self, line_id: str, quantity: int) -> CartItemModel | None:
        item = self.get_cart_item(line_id)
        if item:
            item.quantity = quantity
            self.db.flush()
        return item

    def delete_cart_item(self, line_id: str) -> bool:
        res = self.db.execute(delete(CartItemModel).where(CartItemModel.id == line_id))
        return res.rowcount > 0

    def delete_user_items(self, user_id: str) -> int:
        res = self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == user_id))
        return res.rowcount
