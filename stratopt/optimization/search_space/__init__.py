"""
Parameter space model and combination enumeration.
"""

from .assignment import Assignment
from .enumerator import CombinationEnumerator
from .parameter import Parameter
from .space import ParameterSpace

__all__ = [
    'Assignment',
    'CombinationEnumerator',
    'Parameter',
    'ParameterSpace',
]
