"""
py-cavemap: cave generation and marching squares contouring.
"""

__version__ = "0.1.0"
