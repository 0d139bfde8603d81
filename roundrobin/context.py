"""Request-scoped context passed explicitly through reassignment components."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from roundrobin.config import Settings, get_settings
from roundrobin.i18n import get_translation

if TYPE_CHECKING:
    from roundrobin.reassignment.ports import TranslationProvider


@dataclass
class ReassignmentContext:
    """Ambient values for one reassignment request.

    Attributes:
        booking_id: Booking being reassigned
        org_id: Organization the request runs under, if any
        translations: Locale to translator lookup
        settings: Application settings
        log: Logger bound to the booking
    """

    booking_id: int
    org_id: int | None = None
    translations: "TranslationProvider" = get_translation
    settings: Settings = field(default_factory=get_settings)
    log: structlog.stdlib.BoundLogger | None = None

    def __post_init__(self) -> None:
        if self.log is None:
            self.log = structlog.get_logger().bind(
                component="round_robin_manual_reassign",
                booking_id=self.booking_id,
            )

    @property
    def default_locale(self) -> str:
        return self.settings.default_locale
