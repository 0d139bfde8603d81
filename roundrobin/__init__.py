"""Manual round-robin host reassignment for confirmed bookings."""

__version__ = "0.1.0"
