"""
CourseMart: backend for an online course marketplace.
"""

__version__ = "1.0.0"
