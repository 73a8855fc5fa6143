# mobileshop/services/notification_service.py
from mobileshop.celery_worker import celery_app
from mobileshop.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Customer notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_order_placed(user_id: str, order_id: str):
        send_order_placed_notification_task.delay(user_id, order_id)


@celery_app.task(name="mobileshop.services.notification_service.send_order_placed_notification_task")
def send_order_placed_notification_task(user_id: str, order_id: str):
    """
    A real deployment would send an e-mail or push message here.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} placed successfully")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
