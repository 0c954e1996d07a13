"""
FAISS Adapter - Vector similarity search.
"""

from .index import FAISSIndex

__all__ = ["FAISSIndex"]
