"""
Emoji registry used to tag reporter messages.

Usage:
    >>> from shared.reporter.emojis import Emoji
    >>>
    >>> Emoji.SYSTEM.STARTUP        # "🚀"
    >>> Emoji.WATCH.CONFIRMATION    # "🧱"
    >>> Emoji.SUCCESS               # "✅"
    >>>
    >>> Emoji.format("NETWORK", "SUBSCRIBE", "Subscribed to newHeads")
    '📡 Subscribed to newHeads'
"""

from typing import Dict, List, Type


class ComponentEmoji:
    """
    Base class for component-specific emoji collections.

    Class attributes define emojis as constants; no instances needed.
    """

    @classmethod
    def get_all(cls) -> Dict[str, str]:
        """Get all emoji definitions from this category."""
        return {
            name: value
            for name, value in vars(cls).items()
            if not name.startswith("_") and isinstance(value, str)
        }

    @classmethod
    def list_names(cls) -> List[str]:
        """Get list of all emoji names in this category."""
        return list(cls.get_all().keys())


class SystemEmoji(ComponentEmoji):
    """Process lifecycle."""

    STARTUP = "🚀"
    SHUTDOWN = "🛑"
    READY = "🟢"
    CONFIG = "⚙️"


class NetworkEmoji(ComponentEmoji):
    """Block source connectivity."""

    CONNECT = "🔌"
    DISCONNECT = "🔻"
    SUBSCRIBE = "📡"
    UNSUBSCRIBE = "🔕"
    REQUEST = "📤"
    TIMEOUT = "⏱️"


class StateEmoji(ComponentEmoji):
    """Watch state transitions."""

    ACTIVE = "🔄"
    FALLBACK = "↪️"
    CANCELLED = "🚫"
    REJECTED = "⛔"


class WatchEmoji(ComponentEmoji):
    """Confirmation watching."""

    CONFIRMATION = "🧱"
    THRESHOLD = "🏁"
    POLL = "🔎"
    WAITING = "⏳"


class Emoji:
    """Central emoji registry with semantic categories."""

    SYSTEM = SystemEmoji
    NETWORK = NetworkEmoji
    STATE = StateEmoji
    WATCH = WatchEmoji

    SUCCESS = "✅"
    FAILURE = "❌"
    WARNING = "⚠️"
    ERROR = "🔴"
    INFO = "ℹ️"

    @classmethod
    def get_all_categories(cls) -> Dict[str, Type[ComponentEmoji]]:
        """Get all registered emoji categories."""
        return {
            name: value
            for name, value in vars(cls).items()
            if isinstance(value, type) and issubclass(value, ComponentEmoji)
        }

    @classmethod
    def get(cls, category: str, name: str, default: str = "❓") -> str:
        """
        Get emoji by category and name, returning default if missing.

        Args:
            category: Category name (e.g. "NETWORK")
            name: Emoji name within category (e.g. "SUBSCRIBE")
            default: Value returned when lookup fails

        Returns:
            Emoji character
        """
        category_class = cls.get_all_categories().get(category.upper())
        if category_class is None:
            return default
        return getattr(category_class, name.upper(), default)

    @classmethod
    def format(cls, category: str, name: str, message: str) -> str:
        """Prefix message with the emoji for category/name."""
        emoji = cls.get(category, name, "")
        return f"{emoji} {message}" if emoji else message
