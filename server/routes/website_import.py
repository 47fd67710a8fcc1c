"""Website import endpoint: vendor URL in, deal suggestions out."""

import asyncio

from fastapi import APIRouter, Depends, Request

from models.vendor import CallerIdentity
from pipeline.core import WebsiteDealPipeline
from pipeline.response_mapper import map_error
from server.dependencies import (
    ProfileStore,
    get_caller,
    get_import_request,
    get_pipeline,
    get_profile_store,
)
from server.schemas.requests import WebsiteImportRequest
from server.schemas.responses import ErrorResponseDTO, WebsiteImportResponseDTO
from server.utils import error_response, redact_sensitive_headers
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/vendor", tags=["Website Import"])

_ERROR_RESPONSES = {
    status: {"model": ErrorResponseDTO} for status in (400, 401, 403, 408, 422, 429, 500)
}


@router.post(
    "/scrape-website",
    response_model=WebsiteImportResponseDTO,
    responses=_ERROR_RESPONSES,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": WebsiteImportRequest.model_json_schema()}},
        }
    },
)
async def scrape_website(
    request: Request,
    identity: CallerIdentity = Depends(get_caller),
    body: WebsiteImportRequest = Depends(get_import_request),
    profiles: ProfileStore = Depends(get_profile_store),
    pipeline: WebsiteDealPipeline = Depends(get_pipeline),
):
    """
    Analyze a vendor's website and suggest deals.

    Order: authenticate and rate limit (get_caller), then read the body, then
    the pipeline's own gates (role, tier, URL, backend configuration) before
    any outbound request.
    """
    request_id = getattr(request.state, "request_id", None)

    try:
        # Non-vendors are rejected by the pipeline; skip the profile query for them
        profile = await asyncio.to_thread(profiles.load, identity.user_id) if identity.is_vendor else None

        result = await pipeline.run(identity, profile, body.url or "")
    except Exception as e:
        mapped = map_error(e)
        logger.warning(
            "Website import failed",
            extra={
                "extra_fields": {
                    "request_id": request_id,
                    "code": mapped.kind.value,
                    "status_code": mapped.status_code,
                    "detail": getattr(e, "detail", None) or type(e).__name__,
                    "headers": redact_sensitive_headers(dict(request.headers)),
                }
            },
        )
        return error_response(mapped, request_id)

    return WebsiteImportResponseDTO.from_result(result)
