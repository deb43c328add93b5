"""
SnipStash Backend - Middleware Package
======================================

Middleware Chain (request direction):
    Request → [Request ID] → [Logging] → [Session Gate] → [GZip] → [CORS] → Route

    - Request ID first, so every later log line can carry it
    - Logging wraps the gate, so gate redirects show up in the access log
    - Session Gate only redirects page paths; /api passes straight through
"""
