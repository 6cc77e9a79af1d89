"""User-facing error messages in the locales the point of sale ships with."""

from typing import Any

SUPPORTED_LOCALES = ("en", "ar")

_MESSAGES: dict[str, dict[str, str]] = {
    "invalid_rate": {
        "en": "The exchange rate must be greater than zero.",
        "ar": "يجب أن يكون سعر الصرف أكبر من صفر.",
    },
    "rate_locked": {
        "en": "The exchange rate cannot change after items were added. Start a new invoice.",
        "ar": "لا يمكن تغيير سعر الصرف بعد إضافة الأصناف. ابدأ فاتورة جديدة.",
    },
    "invalid_quantity": {
        "en": "Quantity must be greater than 0",
        "ar": "الكمية يجب أن تكون أكبر من صفر",
    },
    "insufficient_stock": {
        "en": "Insufficient stock. Available: {available_qty}",
        "ar": "المخزون غير كافي. المتاح: {available_qty}",
    },
    "line_not_found": {
        "en": "This item is no longer on the invoice.",
        "ar": "هذا الصنف لم يعد في الفاتورة.",
    },
    "invalid_amount": {
        "en": "Enter a valid amount.",
        "ar": "أدخل مبلغاً صحيحاً.",
    },
    "insufficient_tender": {
        "en": "Total received is less than invoice total",
        "ar": "المبلغ المستلم أقل من الإجمالي",
    },
    "overpayment": {
        "en": "Amount exceeds remaining balance",
        "ar": "المبلغ أكبر من المبلغ المتبقي",
    },
    "invalid_invoice_state": {
        "en": "This invoice can no longer accept this change.",
        "ar": "لا يمكن إجراء هذا التغيير على هذه الفاتورة.",
    },
    "day_closed": {
        "en": "Day must be opened first to create an invoice",
        "ar": "يجب فتح اليوم أولاً لإنشاء فاتورة",
    },
    "empty_invoice": {
        "en": "Please add items to the invoice",
        "ar": "الرجاء إضافة أصناف للفاتورة",
    },
    "customer_required": {
        "en": "Customer is required for wholesale invoice",
        "ar": "يجب تحديد عميل لفاتورة الجملة",
    },
    "network_error": {
        "en": "Cannot reach the server. Check your connection and try again.",
        "ar": "تعذر الاتصال بالخادم. تحقق من الاتصال وحاول مرة أخرى.",
    },
    "timeout": {
        "en": "The server took too long to answer. Try again.",
        "ar": "استغرق الخادم وقتاً طويلاً للرد. حاول مرة أخرى.",
    },
    "server_unavailable": {
        "en": "The server is temporarily unavailable. Try again shortly.",
        "ar": "الخادم غير متاح مؤقتاً. حاول بعد قليل.",
    },
    "stock_conflict": {
        "en": "Stock changed since this invoice was started. Refresh the items and try again.",
        "ar": "تغير المخزون منذ بدء الفاتورة. حدّث الأصناف وحاول مرة أخرى.",
    },
    "unauthorized": {
        "en": "Your session has expired. Please sign in again.",
        "ar": "انتهت الجلسة. الرجاء تسجيل الدخول مرة أخرى.",
    },
    "near_expiry": {
        "en": "Warning: Nearest expiry in {days_until_expiry} days",
        "ar": "تحذير: أقرب تاريخ انتهاء خلال {days_until_expiry} يوم",
    },
}


def localized_message(error: Exception, locale: str = "en") -> str:
    """Render an engine error or advisory for display.

    Codes without a catalog entry (server validation messages, for example)
    fall back to the error's own message, which carries the server's text.
    """
    if locale not in SUPPORTED_LOCALES:
        locale = "en"

    code = getattr(error, "code", None)
    template = _MESSAGES.get(code or "", {}).get(locale)
    if template is None:
        return getattr(error, "message", None) or str(error)

    params: dict[str, Any] = dict(getattr(error, "details", {}) or {})
    for attr in ("available_qty", "days_until_expiry"):
        if hasattr(error, attr):
            params.setdefault(attr, getattr(error, attr))
    try:
        return template.format(**params)
    except KeyError:
        return template
