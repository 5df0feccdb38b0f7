"""Configurações centralizadas do vnova_voice.

Uso típico:
    from vnova_voice.config import get_settings
"""

from vnova_voice.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
