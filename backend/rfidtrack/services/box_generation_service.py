# Overview: Allocates box numbers (B + code + year + serial) for new boxes.

from __future__ import annotations

import re
from datetime import datetime
from typing import Callable

from ..identifiers import BoxNumber
from ..models import Box, User
from ..repositories import BoxRepository
from ..validation import FormatError, SerialOverflowError


BOX_CODE_PATTERN = re.compile(r"[0-9]{3}")


class BoxGenerationService:
    """
    Box number allocation.

    next serial = latest serial under B<code><year> + 1, starting at 00001.
    Entities are returned unsaved. Two concurrent callers can read the same
    "latest" and compute the same number; the unique key on box_no turns
    that race into a ConflictError at save time (see BoxService).
    """

    def __init__(self, box_repository: BoxRepository, clock: Callable[[], datetime]):
        self.box_repository = box_repository
        self.clock = clock

    @staticmethod
    def validate_code(code) -> str:
        if not isinstance(code, str) or not BOX_CODE_PATTERN.fullmatch(code):
            raise FormatError("Box code must be exactly 3 digits")
        return code

    def next_serial(self, code: str) -> int:
        prefix = BoxNumber.prefix(code, self.clock().year)
        latest = self.box_repository.find_latest_by_prefix(prefix)
        return latest.box_no.serial + 1 if latest else 1

    def generate_box(self, code: str, actor: User) -> Box:
        return self.generate_batch_boxes(code, 1, actor)[0]

    def generate_batch_boxes(self, code: str, quantity: int, actor: User) -> list[Box]:
        code = self.validate_code(code)
        year = self.clock().year
        start = self.next_serial(code)
        end = start + quantity - 1

        # All or nothing: never hand out a partial run
        if end > BoxNumber.SERIAL_MAX:
            raise SerialOverflowError(f"Box serial number exceeds {BoxNumber.SERIAL_MAX} for code {code}")

        return [
            Box(box_no=BoxNumber.compose(code, year, serial), code=code, created_by=actor.uuid)
            for serial in range(start, end + 1)
        ]
