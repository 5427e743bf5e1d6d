"""Route calculation endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ... import runtime
from ...schemas.routing import CalculateRouteRequest, RouteResponse

router = APIRouter(tags=["routes"])


@router.post("/calculate-route", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def calculate_route(payload: CalculateRouteRequest) -> RouteResponse:
    """Select the best weather-aware route through ``points``.

    When the routing provider cannot answer at all the response is the
    straight line through the input points with ``fallback`` set.
    """
    try:
        selection = runtime.get_route_service().select_route(payload.points, optimize=payload.optimize)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error calculating route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to calculate route: {str(exc)}",
        ) from exc
    return RouteResponse.from_selection(selection)
