"""
serpsurfer: keyword search, target click-through and paced revisits.
"""

__version__ = "1.0.0"
