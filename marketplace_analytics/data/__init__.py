"""
Data Module

Synthetic marketplace data for demos and development.
"""

from .generators import DataGenerator

__all__ = ["DataGenerator"]
