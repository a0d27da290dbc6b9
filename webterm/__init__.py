"""webterm - drive a running browser from the terminal."""

__version__ = "0.1.0"
__logo__ = "🌐"
