import logging
from typing import Optional
from urllib.parse import quote, unquote_plus

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from opentelemetry import trace

from pageproxy.proxy.fetcher import FetchError
from pageproxy.proxy.resolver import InvalidURL, resolve_target_url
from pageproxy.proxy.service import ProxyService, default_proxy_service
from pageproxy.utils.exception_logging import log_exception_with_details
from pageproxy.utils.traced_requests import traced_request
from pageproxy.vars import PROXY_BASE_PATH, PROXY_ENTRY

router = APIRouter(prefix=PROXY_BASE_PATH)

logger = logging.getLogger("uvicorn.error")

tracer = trace.get_tracer(__name__)

if PROXY_BASE_PATH:
    logger.info(f"Using PROXY_BASE_PATH: {PROXY_BASE_PATH}")


def get_proxy_service() -> ProxyService:
    return default_proxy_service()


# Reserved characters kept as they are when re-encoding an already decoded path
_PATH_SAFE = ":/?#[]@!$&'()*+,;=~"


def raw_path_target(request: Request, target: str) -> str:
    """
    The path-form target exactly as the client sent it, still percent-encoded.

    Starlette hands path params over already decoded; decoding them again
    would turn ``%2520`` into a space. ``raw_path`` is optional in ASGI, so
    without it the decoded target is re-encoded with reserved characters kept.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("utf-8", errors="replace")
        entry = f"{PROXY_BASE_PATH}{PROXY_ENTRY}/"
        idx = path.find(entry)
        if idx >= 0:
            return path[idx + len(entry) :]
    return quote(target, safe=_PATH_SAFE)


def raw_query_param(request: Request, name: str) -> Optional[str]:
    """First value of a query parameter, not yet percent-decoded."""
    query_string = request.scope.get("query_string", b"").decode(
        "utf-8", errors="replace"
    )
    for part in query_string.split("&"):
        key, _, value = part.partition("=")
        if unquote_plus(key) == name:
            return value
    return None


async def _proxy(
    target: Optional[str],
    url: Optional[str],
    showtext: Optional[str],
    service: ProxyService,
) -> Response:
    mode = "text" if showtext == "1" else "page"
    try:
        target_url = resolve_target_url(target, url)
    except InvalidURL as e:
        logger.warning(f"[Proxy] Rejected target {e.candidate!r}: {e.reason}")
        raise HTTPException(status_code=400, detail="Invalid URL.")

    with traced_request(
        tracer,
        operation="proxy_request",
        target_url=target_url,
        mode=mode,
        start_message=f"[Proxy] Serving {mode} for",
    ) as span:
        try:
            if mode == "text":
                result = await service.show_text(target_url)
            else:
                result = await service.proxy(target_url)
        except FetchError as e:
            span.set_attribute("proxy.error", e.message)
            raise HTTPException(
                status_code=502,
                detail=f"Failed to fetch remote content. Error: {e.message}",
            )
        except HTTPException:
            raise
        except Exception as e:
            log_exception_with_details(logger, "[Proxy]", e)
            raise HTTPException(status_code=500, detail="Internal server error")

        span.set_attribute("proxy.status_code", result.status_code)
        if result.cache_hit is not None:
            span.set_attribute("proxy.cache.hit", result.cache_hit)
        return Response(
            content=result.body,
            status_code=result.status_code,
            headers=result.headers,
        )


@router.get(PROXY_ENTRY)
async def proxy_by_query(
    request: Request,
    url: Optional[str] = Query(None, description="Percent-encoded absolute URL"),
    showtext: Optional[str] = Query(
        None, description="Set to 1 to return the page's visible text only"
    ),
    service: ProxyService = Depends(get_proxy_service),
):
    query_url = raw_query_param(request, "url") if url is not None else None
    return await _proxy(None, query_url, showtext, service)


@router.get(PROXY_ENTRY + "/{target:path}")
async def proxy_by_path(
    request: Request,
    target: str,
    url: Optional[str] = Query(None, description="Used when the path is empty"),
    showtext: Optional[str] = Query(
        None, description="Set to 1 to return the page's visible text only"
    ),
    service: ProxyService = Depends(get_proxy_service),
):
    query_url = raw_query_param(request, "url") if url is not None else None
    return await _proxy(
        raw_path_target(request, target), query_url, showtext, service
    )
