"""
Web application package for profwrap.

This package contains the demo service the supervisor wraps: a small Starlette
application and the Hypercorn routine that serves it in-process.
"""
