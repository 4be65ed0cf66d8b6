"""
Account Machine - synthetic credential generation, batch registration and
the account stepping game.
"""

__version__ = "1.0.0"
