"""Trip planner endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from ...errors import BuildFailed, OperationCancelled
from ...models.domain import Coordinate
from ...schemas.planner import (
    AvailableModesResponse,
    ClassifyLocationRequest,
    LocationClassificationModel,
    ModeComparisonResponse,
    ModeSelectionResponse,
    OptimizationResponse,
    OptimizeRequest,
    SelectModeRequest,
)
from ...services.optimizer.orchestrator import SmartRouteOptimizer
from ...services.outputs.formatter import (
    classification_to_model,
    comparison_to_response,
    disabled_mode_to_model,
    package_to_model,
    result_to_response,
)

router = APIRouter(prefix="/planner", tags=["planner"])


def _optimizer(request: Request) -> SmartRouteOptimizer:
    return request.app.state.optimizer


@router.post("/optimize", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRequest, request: Request) -> OptimizationResponse:
    prefs = payload.user_prefs.model_dump(by_alias=True, exclude_none=True) if payload.user_prefs else {}
    try:
        result = _optimizer(request).generate_packages(
            Coordinate(lat=payload.origin.lat, lng=payload.origin.lng),
            Coordinate(lat=payload.destination.lat, lng=payload.destination.lng),
            prefs,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BuildFailed as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except OperationCancelled as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error generating route packages: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate route packages: {str(exc)}"
        ) from exc
    return result_to_response(result)


@router.post("/select-mode", response_model=ModeSelectionResponse, status_code=status.HTTP_200_OK)
def select_mode(payload: SelectModeRequest, request: Request) -> ModeSelectionResponse:
    try:
        package = _optimizer(request).select_mode(payload.mode)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ModeSelectionResponse(
        mode=payload.mode,
        selected=package is not None,
        package=package_to_model(package) if package is not None else None,
    )


@router.get("/modes", response_model=AvailableModesResponse, status_code=status.HTTP_200_OK)
def modes(request: Request) -> AvailableModesResponse:
    optimizer = _optimizer(request)
    return AvailableModesResponse(
        available=optimizer.get_available_modes(),
        disabled=[disabled_mode_to_model(item) for item in optimizer.get_disabled_modes()],
        selected=optimizer.get_selected_mode(),
    )


@router.get("/compare", response_model=ModeComparisonResponse, status_code=status.HTTP_200_OK)
def compare(request: Request) -> ModeComparisonResponse:
    comparison = _optimizer(request).compare_modes()
    if comparison is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No route packages have been generated yet",
        )
    return comparison_to_response(comparison)


@router.post("/classify-location", response_model=LocationClassificationModel, status_code=status.HTTP_200_OK)
def classify_location(payload: ClassifyLocationRequest, request: Request) -> LocationClassificationModel:
    classification = _optimizer(request).classify_location(payload.place_id, payload.name, payload.types)
    return classification_to_model(classification)


@router.delete("/cache", status_code=status.HTTP_200_OK)
def clear_cache(request: Request) -> dict:
    """Drop cached results and the last generated result."""
    _optimizer(request).clear_cache()
    return {"cleared": True}
