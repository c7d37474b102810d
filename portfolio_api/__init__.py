"""
Portfolio API - contact form and message rewording backend for a personal
portfolio site.
"""

from portfolio_api.__version__ import __version__

__all__ = ["__version__"]
