"""
Search strategies for parameter optimization.
"""

from .base import SearchPass, SearchStrategy
from .divide_and_conquer import DivideAndConquerSearch
from .exhaustive import ExhaustiveSearch

__all__ = [
    'SearchPass',
    'SearchStrategy',
    'ExhaustiveSearch',
    'DivideAndConquerSearch',
]
