"""Raw log dict -> typed event variant."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError

from pairstats.core.errors import DecodeError
from pairstats.schemas.events import PairEvent, PairRegistered, pair_event_adapter


class LogDecoder:
    """Validates raw logs into the closed set of event variants.

    Registrations are only accepted from ``registry_address``; anything else
    claiming to be one is treated as undecodable.
    """

    def __init__(self, registry_address: str):
        self.registry_address = registry_address.lower()

    def decode(self, raw: Dict[str, Any]) -> PairEvent:
        try:
            event = pair_event_adapter.validate_python(raw)
        except ValidationError as exc:
            errors = "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
            raise DecodeError(f"undecodable log: {errors}", raw=raw) from exc

        if isinstance(event, PairRegistered) and event.address != self.registry_address:
            raise DecodeError(f"registration emitted by {event.address}, not the registry", raw=raw)
        return event
