"""Terminal browser and lifetime sales summaries for CardTrader sellers."""

__version__ = "0.1.0"
