"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from live_tracker.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
