"""
Telegram Shop API - Source Code Package
=======================================
Бэкенд магазина для Telegram WebApp: каталог, заказы, склад, отзывы.

Структура:
- core/     - Конфигурация и логирование
- db/       - Модели SQLAlchemy и сессии
- services/ - Бизнес-логика (дерево категорий, заказы, отзывы, пользователи)
"""

__version__ = "1.0.0"
