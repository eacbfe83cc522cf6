__all__ = ["TelegramApiError", "TelegramBotClient", "TelegramNotifier"]

from pi_price.notifications.telegram import TelegramApiError, TelegramBotClient, TelegramNotifier
