"""
Catalog package: product models, the listing cache policy, and the read
and write paths built on the store and cache gateways.
"""

from .reader import ProductReader
from .writer import ProductWriter

__all__ = ["ProductReader", "ProductWriter"]
