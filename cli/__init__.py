# cli/__init__.py
"""
Operator command line for leaddesk.
"""
