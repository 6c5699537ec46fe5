"""
formglow: exercise classification and form scoring from pose landmarks.
"""

__version__ = "0.1.0"
