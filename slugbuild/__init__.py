"""slugbuild — Node.js slug compiler with a persistent dependency cache."""

__version__ = "0.1.0"
