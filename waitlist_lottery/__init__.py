"""
Waitlist lifecycle and lottery allocation engine
"""

__version__ = "1.0.0"
