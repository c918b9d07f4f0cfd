"""tiergc - tiered context garbage collection for agent conversations."""

__version__ = "0.1.0"
__logo__ = "♻️"
