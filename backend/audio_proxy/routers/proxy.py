"""Audio proxy endpoints."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import Response

from ..dependencies import get_fetcher, get_impersonator, get_relay, get_validator
from ..impersonation import HeaderImpersonator
from ..schemas import ErrorPayload
from ..services import AbandonedResponse, ResponseRelay, UpstreamFetcher
from ..validation import RequestValidator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])

ERROR_RESPONSES = {
    400: {"model": ErrorPayload, "description": "Missing or malformed target URL."},
    403: {"model": ErrorPayload, "description": "Target domain is not on the allow-list."},
    500: {"model": ErrorPayload, "description": "Transport failure talking to the upstream."},
    502: {"model": ErrorPayload, "description": "Upstream answered with an error status."},
    504: {"model": ErrorPayload, "description": "Upstream did not answer in time."},
}


@router.api_route(
    "/proxy",
    methods=["GET", "HEAD"],
    summary="Relay an upstream audio stream",
    responses=ERROR_RESPONSES,
)
@router.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
async def proxy_audio(
    request: Request,
    url: Optional[str] = Query(None, description="Percent-encoded absolute HTTP(S) audio URL."),
    range_header: Optional[str] = Header(None, alias="Range"),
    validator: RequestValidator = Depends(get_validator),
    impersonator: HeaderImpersonator = Depends(get_impersonator),
    fetcher: UpstreamFetcher = Depends(get_fetcher),
    relay: ResponseRelay = Depends(get_relay),
) -> Response:
    """Fetch ``url`` with impersonated headers and stream the result back.

    The upstream is always requested with GET. For HEAD the upstream body is
    discarded unread and only the status and headers are returned. If the
    caller disconnects before the upstream answers, the fetch is cancelled
    and nothing is sent.
    """

    target = validator.validate(url, range_header)
    logger.info(f"[{request.method}] Proxying {target.hostname} range={target.range or '-'}")

    headers = impersonator.build_outbound_headers(target.hostname, target.range)
    outcome = await fetcher.fetch_while_connected(target, headers, request.receive)
    if outcome is None:
        return AbandonedResponse()
    return await relay.relay(outcome, include_body=request.method != "HEAD")
