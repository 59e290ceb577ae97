from .destination import DestinationResolver, resolve
from .locator import locate
from .sanitize import sanitize

__all__ = ["DestinationResolver", "locate", "resolve", "sanitize"]
