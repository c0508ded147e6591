"""
Utility functions
"""
from .id_generator import generate_id, validate_id

__all__ = ['generate_id', 'validate_id']
