# Overview: Synthesizes unique shipment numbers with a bounded collision retry.

from __future__ import annotations

import logging
import random
import string
from datetime import datetime
from typing import Callable, Optional

from ..identifiers import ShipmentNumber, UserCode
from ..models import Shipment, User
from ..repositories import ShipmentRepository
from ..validation import GenerationExhaustedError


logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_uppercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


class ShipmentGenerationService:
    """
    Shipment number = user code + base36(epoch millis) + random base36,
    cut to 16 characters. Collisions against existing shipments are
    retried up to max_attempts, then GenerationExhaustedError.
    """

    def __init__(
        self,
        shipment_repository: ShipmentRepository,
        clock: Callable[[], datetime],
        rng: Optional[random.Random] = None,
        max_attempts: int = 100,
    ):
        self.shipment_repository = shipment_repository
        self.clock = clock
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts

    def _candidate(self, user_code: UserCode) -> ShipmentNumber:
        millis = int(self.clock().timestamp() * 1000)
        head = f"{user_code.value}{to_base36(millis)}"
        fill = max(ShipmentNumber.LENGTH - len(head), 6)
        tail = "".join(self.rng.choice(BASE36_ALPHABET) for _ in range(fill))
        return ShipmentNumber(f"{head}{tail}"[: ShipmentNumber.LENGTH])

    def generate_shipment_number(self, user_code: UserCode) -> ShipmentNumber:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self._candidate(user_code)
            if not self.shipment_repository.exists(candidate):
                return candidate
            logger.debug("Shipment number %s taken (attempt %d)", candidate, attempt)

        raise GenerationExhaustedError(
            f"Failed to generate unique shipment number after {self.max_attempts} attempts"
        )

    def generate_shipment(self, user_code: UserCode, actor: User, note: Optional[str] = None) -> Shipment:
        return Shipment(
            shipment_no=self.generate_shipment_number(user_code),
            user_code=user_code,
            created_by=actor.uuid,
            note=note,
        )
