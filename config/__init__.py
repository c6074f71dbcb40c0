from .settings import ConfigurationError, Settings, get_settings

# Shown when a symbol search is issued with an empty query
POPULAR_SYMBOLS = [
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA",
    "NVDA", "META", "NFLX", "PYPL", "INTC",
]

__all__ = ["ConfigurationError", "Settings", "get_settings", "POPULAR_SYMBOLS"]
