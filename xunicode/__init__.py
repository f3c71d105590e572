"""Table-driven Unicode text segmentation and tools for building its tables."""

__version__ = "0.1.0"