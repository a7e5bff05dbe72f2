"""
ViajaTheme: visual theming engine for the marketplace storefront.
"""

__version__ = "1.0.0"
