"""Who is asking: the authenticated principal and the origin of a transition.

A transition is either seller-initiated, gated by item ownership, or
courier-initiated, trusted for the shipment-stage edges. Both feed the same
``OrderTransitions.apply``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from ordering.order.order import OriginKind


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the auth collaborator."""

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class SellerInitiated:
    actor: Principal

    kind: ClassVar[OriginKind] = OriginKind.SELLER


@dataclass(frozen=True)
class CourierInitiated:
    awb: str
    location: str | None = None

    kind: ClassVar[OriginKind] = OriginKind.COURIER


TransitionOrigin = SellerInitiated | CourierInitiated
