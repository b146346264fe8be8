# Search engine adapters
from .search_engine_ping import SearchEnginePinger

__all__ = ["SearchEnginePinger"]
