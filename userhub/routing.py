"""
Composition of path-prefixed sub-routers into one ordered route table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from fastapi import APIRouter, FastAPI

from userhub.errors import ConfigurationError


@dataclass(frozen=True)
class RouteBinding:
    prefix: str
    router: APIRouter

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")


@dataclass(frozen=True)
class RouteTable:
    """Ordered, immutable bindings. The first binding that matches wins."""

    bindings: Tuple[RouteBinding, ...]

    @property
    def prefixes(self) -> Tuple[str, ...]:
        return tuple(binding.prefix for binding in self.bindings)

    def resolve(self, path: str) -> Optional[RouteBinding]:
        for binding in self.bindings:
            if binding.matches(path):
                return binding
        return None

    def include_into(self, app: FastAPI) -> None:
        # Starlette tries routes in registration order, so mount order is dispatch order
        for binding in self.bindings:
            app.include_router(binding.router, prefix=binding.prefix)


def compose(bindings: Iterable[Sequence]) -> RouteTable:
    composed = []
    for prefix, router in bindings:
        if not prefix.startswith("/") or prefix.endswith("/"):
            raise ConfigurationError(
                f"Route prefix must start with '/' and not end with one: {prefix!r}"
            )
        composed.append(RouteBinding(prefix=prefix, router=router))
    return RouteTable(bindings=tuple(composed))
