"""
Feed Portal - cattle-feed sales, production and target tracking.
"""
__version__ = "1.0.0"
