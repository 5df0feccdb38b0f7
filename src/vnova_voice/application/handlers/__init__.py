"""Handlers de intenção: extraem parâmetros, resolvem contexto e aplicam side effects."""

from __future__ import annotations

from vnova_voice.application.handlers.base import IntentHandler
from vnova_voice.application.handlers.filters import FilterHandler
from vnova_voice.application.handlers.navigation import NavigationHandler
from vnova_voice.application.handlers.order import OrderCompletionHandler
from vnova_voice.application.handlers.product import ProductActionHandler
from vnova_voice.application.handlers.user_info import UserInfoHandler

__all__ = [
    "IntentHandler",
    "FilterHandler",
    "NavigationHandler",
    "OrderCompletionHandler",
    "ProductActionHandler",
    "UserInfoHandler",
]
