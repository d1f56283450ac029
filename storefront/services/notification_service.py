# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Purchase notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_purchase_notification(purchaser: str, ticket_code: str, amount: str, partial: bool = False):
        send_purchase_notification_task.delay(purchaser, ticket_code, amount, partial)


@celery_app.task(name="storefront.services.notification_service.send_purchase_notification_task")
def send_purchase_notification_task(purchaser: str, ticket_code: str, amount: str, partial: bool = False):
    """
    Only logs, mail delivery is handled outside this service.
    """
    kind = "partial purchase" if partial else "purchase"
    logger.info(f"[NOTIFICATION] {purchaser}: {kind} {ticket_code}, amount {amount}")

    return {"purchaser": purchaser, "ticket_code": ticket_code, "status": "sent"}
