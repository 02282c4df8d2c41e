"""Request-scoped collaborators resolved from the application state."""

from fastapi import Header, HTTPException, Request

from ordering.order.courier_updates import CourierStatusHandler
from ordering.order.origins import Principal, Role
from ordering.order.service import OrderService
from shared.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_courier_handler(request: Request) -> CourierStatusHandler:
    return request.app.state.courier_handler


def get_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=Role.BUYER.value),
) -> Principal:
    """Principal forwarded by the auth gateway in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing authenticated principal")
    try:
        role = Role(x_user_role.lower())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from exc
    return Principal(id=x_user_id, role=role)
