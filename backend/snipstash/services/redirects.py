"""
SnipStash Backend - Redirect Allow-List
=======================================

What:  Decides where the browser goes after sign-in.
How:   Absolute URLs are only honoured for our own hostname in production;
       relative URLs are re-rooted on the canonical base URL; auth endpoints
       themselves are never a destination.
Who:   Called by POST /api/auth/signin with the client's callbackUrl.

This is the open-redirect control for the sign-in flow. Keep the rules as
they are unless the threat model changes.
"""

import logging
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

AUTH_OPERATION_PREFIXES = ("/api/auth/signin", "/api/auth/callback")


def resolve_redirect(url: str, base_url: str, production: bool) -> str:
    """
    Args:
        url: Requested destination (absolute or relative)
        base_url: Canonical site URL, e.g. "https://snipstash.example"
        production: Enables the hostname check for absolute URLs

    Returns:
        The URL to redirect to.
    """
    base_url = base_url.rstrip("/")

    if url.startswith("http"):
        if production:
            if urlsplit(url).hostname == urlsplit(base_url).hostname:
                logger.info("Allowing absolute redirect to %s", url)
                return url
            logger.warning("Rejecting external redirect to %s", url)
            return base_url
        return url

    if url.startswith(AUTH_OPERATION_PREFIXES):
        return base_url

    return f"{base_url}{url if url.startswith('/') else '/' + url}"
