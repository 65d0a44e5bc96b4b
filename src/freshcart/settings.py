"""Business settings read from ``[tool.protean.custom]`` with built-in defaults."""

from typing import Any

from protean.utils.globals import current_domain

DEFAULTS: dict[str, Any] = {
    "tax_rate": 0.08,
    "order_number_prefix": "ORD",
    "refund_number_prefix": "REF",
    "pending_order_ttl_minutes": 30,
    "max_orders_per_slot": 10,
    "max_items_per_slot": 100,
    "slot_duration_minutes": 60,
    "advance_booking_days": 7,
    "min_lead_minutes": 60,
    "near_full_threshold": 80,
    # Weekday names follow datetime.date.strftime("%A").lower()
    "operating_hours": {
        "sunday": ["09:00", "18:00"],
        "monday": ["08:00", "20:00"],
        "tuesday": ["08:00", "20:00"],
        "wednesday": ["08:00", "20:00"],
        "thursday": ["08:00", "20:00"],
        "friday": ["08:00", "20:00"],
        "saturday": ["08:00", "20:00"],
    },
    "blackout_dates": [],
    "reservation_attempts": 3,
}


def setting(key: str) -> Any:
    """Return a business setting, preferring the active domain's custom config."""
    custom = current_domain.config.get("custom") or {}
    if key in custom:
        return custom[key]
    return DEFAULTS[key]
