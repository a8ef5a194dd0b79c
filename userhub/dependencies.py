"""
Request-scoped dependencies resolved from the per-process context.
"""

from __future__ import annotations

from fastapi import Depends, Request

from userhub.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_database(context: AppContext = Depends(get_context)):
    """Database handle from the cached connection. Connected by the entry strategy before dispatch."""
    return await context.get_database()
