"""
dealrank - explainable ranking of marketplace listings.
"""

__version__ = "1.0.0"
