"""
Soul Listing Monitor

A polling monitor that watches marketplace listings for the Solana Souls
collection, joins them against a local rarity dataset, filters them by
price, rarity, rank and traits, and reports what appeared or disappeared
since the previous poll.
"""

__version__ = "0.1.0"
__author__ = "Soul Listing Monitor Team"
