"""
Marketplace Analytics Engine

Operational metrics for a food-delivery marketplace: growth, retention,
order heatmaps, restaurant performance and delivery statistics.
"""

__version__ = "1.0.0"
