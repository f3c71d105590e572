"""Namespace reserved for trie generation; it holds no modules yet."""

__version__ = "0.1.0"