"""
SnipStash Backend - Routes Package
==================================

Route Inventory:
    - register.py:  POST /api/register
    - auth.py:      POST /api/auth/signin, POST /api/auth/signout,
                    GET  /api/auth/session
    - snippets.py:  GET/POST /api/snippets,
                    GET/PUT/PATCH/DELETE /api/snippets/{id}
    - pages.py:     GET /, /auth, /landing, /snippets/{id} (HTML)
    - health.py:    GET /health

Routes stay thin: read the request, call a service, shape the response.
Rules live in services/.
"""
