"""Back up media from deleted messages of a Telegram channel."""
__version__ = "0.1.0"
