"""
Core configuration, logging and error types for the Excel engine.
"""

__version__ = "1.0.0"
