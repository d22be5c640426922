"""
polydns - provider-neutral DNS zone and record management
"""

__version__ = "0.1.0"
