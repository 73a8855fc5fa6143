# import all models so SQLAlchemy registers them in Base.metadata

from mobileshop.data.models.user import UserModel
from mobileshop.data.models.product import ProductModel
from mobileshop.data.models.cart_item import CartItemModel
from mobileshop.data.models.order import OrderModel
from mobileshop.data.models.order_item import OrderItemModel

__all__ = ["UserModel", "ProductModel", "CartItemModel", "OrderModel", "OrderItemModel"]
