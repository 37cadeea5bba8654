"""dicepoker: live terminal client for two-player Poker de Dados rooms."""

__version__ = "0.3.0"
