# -*- coding: utf-8 -*-
"""
Backend API магазина в Telegram WebApp.

FastAPI приложение для каталога, заказов и отзывов.
"""
