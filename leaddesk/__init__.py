# leaddesk/__init__.py
"""
Lead capture and admin dashboard API for the training program site.
"""

__version__ = "1.0.0"
