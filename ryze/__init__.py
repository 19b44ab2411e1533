"""
Ryze - Relay League of Legends news to a chat channel.

Polls the official news feed, keeps the items published since the last
poll and posts them to Discord (or Telegram) as structured messages.
"""

__version__ = "1.0.0"
# Replaced at build time; RYZE_GIT_COMMIT overrides it at runtime
__commit__ = "dev"
