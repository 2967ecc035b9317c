"""
Уведомления о заказах.

Доставка сообщений через Telegram Bot API не реализована:
намерения отправить уведомление только пишутся в лог.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.core.config import Settings
from src.db.models import Order, User

logger = logging.getLogger(__name__)


class OrderNotifier:
    def __init__(self, settings: Settings):
        self.settings = settings

    def new_order(self, order: Order, customer: User) -> None:
        """Уведомление администратора о новом заказе."""
        who = customer.first_name or customer.username or customer.id
        logger.info(
            f"УВЕДОМЛЕНИЕ АДМИНУ (TG ID: {self.settings.ADMIN_TELEGRAM_ID or '-'}): "
            f"новый заказ #{order.id} от пользователя {who}, "
            f"сумма {order.total_amount:.2f} {self.settings.CURRENCY}, "
            f"скриншот: {order.screenshot_path or 'не загружен'}"
        )

    def status_changed(self, order_id: int, telegram_id: Optional[int], new_status: str) -> None:
        """Уведомление покупателя о смене статуса заказа."""
        if not telegram_id:
            return
        logger.info(
            f"УВЕДОМЛЕНИЕ ПОЛЬЗОВАТЕЛЮ (TG ID: {telegram_id}): "
            f"статус заказа #{order_id} изменён на {new_status.upper()}"
        )
