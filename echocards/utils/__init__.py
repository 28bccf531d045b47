"""
Utility functions and classes for the EchoCards application.
"""

from .validators import DataValidator, ValidationError
from .serialization import DataSerializer, JSONEncoder

__all__ = [
    'DataValidator', 'ValidationError',
    'DataSerializer', 'JSONEncoder',
]
