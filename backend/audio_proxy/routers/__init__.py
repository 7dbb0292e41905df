"""Router exports for the audio proxy."""
from . import health, proxy

__all__ = ["health", "proxy"]
