"""Fire Emblem Heroes stats scraper"""

__version__ = "0.1.0"
