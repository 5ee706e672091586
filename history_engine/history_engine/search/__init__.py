from history_engine.search.index import SearchIndex

__all__ = ["SearchIndex"]
