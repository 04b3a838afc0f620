"""
salonbook - appointment availability and booking for a beauty salon.
"""

__version__ = "0.3.0"
