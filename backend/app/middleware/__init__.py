# Middleware package init
"""
Notes API Backend — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → Route Handler

    1. Request ID first: every later log line can carry the correlation id
    2. Logging: measures the full handler duration and logs the final status

    On the way out, the request id header is added after logging has run.
"""
