"""Notification channel registry.

Fake adapters are used unless a real one is installed with ``set_channel``.
"""

_channel_instances: dict[str, object] = {}

EMAIL = "Email"


def get_channel(channel_type: str = EMAIL):
    """Return the configured channel adapter (singleton per channel type)."""
    if channel_type not in _channel_instances:
        if channel_type == EMAIL:
            from freshcart.notification.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
