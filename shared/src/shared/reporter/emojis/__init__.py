"""Emoji definitions for system reporting."""

from shared.reporter.emojis.emoji import (
    ComponentEmoji,
    Emoji,
    NetworkEmoji,
    StateEmoji,
    SystemEmoji,
    WatchEmoji,
)

__all__ = [
    "ComponentEmoji",
    "Emoji",
    "NetworkEmoji",
    "StateEmoji",
    "SystemEmoji",
    "WatchEmoji",
]
