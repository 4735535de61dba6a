"""Read heterogeneous document sources and split them into retrieval chunks."""

__version__ = "0.1.0"
