"""
cricsim - ball-by-ball cricket scoring and over simulation
"""
__version__ = "0.1.0"
