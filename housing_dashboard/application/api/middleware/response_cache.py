"""
Response Cache Middleware
=========================

Caches GET responses of read-heavy route groups in the ``CacheStore``.

Flow for a GET under a cached prefix:
1. Build the key from (namespace, path, sorted query items, sorted path params)
2. Hit  → answer from the cache, ``X-Cache: HIT``; the handler never runs
3. Miss → run the handler; a 200 JSON response is written back to the cache
   as a background task after the response is sent, ``X-Cache: MISS``

Every GET that passes through here carries ``X-Cache``. Error responses are
tagged MISS and never stored. Exceptions from the handler propagate to the
error-handling middleware, which copies ``request.state.cache_status`` onto
its 500. Both HIT and MISS bodies are rendered
with orjson from the same payload, so they are byte-identical.

Concurrent misses for the same key each run the handler; the last write wins.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import orjson
from fastapi import Request, Response
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from housing_dashboard.core.config.constants import HEADER_CACHE, CacheStatus, Stage
from housing_dashboard.core.logging.logger import get_logger
from housing_dashboard.infrastructure.cache.cache_store import CacheStore

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json"


@dataclass(frozen=True)
class CachePolicy:
    """GET responses under ``prefix`` are cached in ``namespace`` for ``ttl`` seconds."""

    prefix: str
    namespace: str
    ttl: int

    def matches(self, path: str) -> bool:
        prefix = self.prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")


def resolve_path_params(request: Request) -> dict[str, Any]:
    """
    Path parameters of the route this request will hit.

    Routing runs after middleware, so match against the app's routes here.
    """
    app = request.scope.get("app")
    router = getattr(app, "router", None)
    if router is None:
        return {}
    for route in router.routes:
        match, child_scope = route.matches(request.scope)
        if match == Match.FULL:
            return dict(child_scope.get("path_params", {}))
    return {}


def render_json(payload: Any, cache_status: CacheStatus, background: BackgroundTask | None = None) -> Response:
    return Response(
        content=orjson.dumps(payload),
        status_code=200,
        media_type=JSON_MEDIA_TYPE,
        headers={HEADER_CACHE: cache_status.value},
        background=background,
    )


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    """
    Args:
        app: The ASGI application
        cache_store: Store the responses are cached in
        policies: Cached route groups
    """

    def __init__(self, app, cache_store: CacheStore, policies: Sequence[CachePolicy]):
        super().__init__(app)
        self._store = cache_store
        self._policies = sorted(policies, key=lambda p: len(p.prefix), reverse=True)

    def _match(self, path: str) -> CachePolicy | None:
        for policy in self._policies:
            if policy.matches(path):
                return policy
        return None

    def cache_key(self, request: Request, policy: CachePolicy) -> str:
        return self._store.generate_key(
            policy.namespace,
            request.url.path,
            sorted(request.query_params.multi_items()),
            resolve_path_params(request),
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method != "GET":
            return await call_next(request)

        policy = self._match(request.url.path)
        if policy is None:
            return await call_next(request)

        key = self.cache_key(request, policy)
        cached = await self._store.get(key)
        if cached is not None:
            logger.debug("Response cache hit", stage=Stage.CACHE_LOOKUP.value, key=key)
            return render_json(cached, CacheStatus.HIT)

        request.state.cache_status = CacheStatus.MISS.value
        response = await call_next(request)

        content_type = response.headers.get("content-type", "")
        if response.status_code != 200 or not content_type.startswith(JSON_MEDIA_TYPE):
            response.headers[HEADER_CACHE] = CacheStatus.MISS.value
            return response

        body = b""
        async for chunk in response.body_iterator:
            body += chunk.encode() if isinstance(chunk, str) else chunk

        try:
            payload = orjson.loads(body)
        except orjson.JSONDecodeError:
            logger.warning("Uncacheable JSON response body", stage=Stage.CACHE_WRITE.value, key=key)
            passthrough = Response(
                content=body,
                status_code=response.status_code,
                headers={k: v for k, v in response.headers.items() if k.lower() != "content-length"},
            )
            passthrough.headers[HEADER_CACHE] = CacheStatus.MISS.value
            return passthrough

        write_back = BackgroundTask(self._store.set, key, payload, policy.ttl)
        return render_json(payload, CacheStatus.MISS, background=write_back)
