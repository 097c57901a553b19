"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from services.pipeline import RequestPipeline

router = APIRouter()

# Every verb is routed to the pipeline so that it, not the framework, decides on 405.
_ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_pipeline(request: Request) -> RequestPipeline:
    return request.app.state.pipeline


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.api_route(
    "/",
    methods=_ROUTED_METHODS,
    summary="POST a reading to store it; GET a time window of stored readings.",
    response_class=Response,
)
async def readings(
    request: Request,
    pipeline: RequestPipeline = Depends(get_pipeline),
) -> Response:
    result = await pipeline.dispatch(
        method=request.method,
        content_type=request.headers.get("content-type"),
        body=await request.body(),
        query=request.query_params,
    )
    return Response(content=result.content, status_code=result.status, headers=result.headers)
