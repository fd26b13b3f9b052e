"""
Serving Module

HTTP access to the analytics engine.
"""
