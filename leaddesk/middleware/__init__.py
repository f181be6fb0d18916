# leaddesk/middleware/__init__.py
"""
ASGI middleware: admin gate, request ids, request logging.
"""
