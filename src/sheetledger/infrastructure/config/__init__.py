from sheetledger.infrastructure.config.repository import SettingsRepository

__all__ = ["SettingsRepository"]
