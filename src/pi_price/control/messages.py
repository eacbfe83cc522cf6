from __future__ import annotations

from typing import Any

UNAUTHORIZED_START = "⛔️ دسترسی غیرمجاز! فقط ادمین‌ها مجاز به استفاده از این ربات هستند."
UNAUTHORIZED_CALLBACK = "⛔️ فقط ادمین مجاز است!"
WELCOME = "به ربات قیمت‌گذاری Pi Network خوش آمدید! 🚀"

STATUS_ACTIVE = "وضعیت ربات: ✅ فعال"
STATUS_INACTIVE = "وضعیت ربات: ❌ غیرفعال"
TURNED_ON = "✅ ربات فعال شد."
TURNED_OFF = "❌ ربات غیرفعال شد."
PRICE_UNAVAILABLE = "❌ قیمت در حال حاضر موجود نیست!"


def current_price(price: str) -> str:
    return f"قیمت فعلی PI Network: {price} USD"


def inline_keyboard() -> dict[str, Any]:
    return {
        "inline_keyboard": [
            [
                {"text": "📊 وضعیت", "callback_data": "status"},
                {"text": "✅ روشن", "callback_data": "on"},
                {"text": "❌ خاموش", "callback_data": "off"},
            ],
            [
                {"text": "💰 دریافت قیمت", "callback_data": "get_price"},
            ],
        ]
    }
