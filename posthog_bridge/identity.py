from __future__ import annotations

import threading

from loguru import logger

AUTO_ID_PREFIX = "$device:"


class IdentityStore:
    """Holds the device id and the current distinct id.

    The device id never changes. The distinct id is guarded by a lock
    that is held only for a single read or write.
    """

    def __init__(self, device_id: str, *, auto_identify: bool = False) -> None:
        """
        @type device_id: str
        @param device_id: Stable id of this installation.
        @type auto_identify: bool
        @param auto_identify: If C{True}, the distinct id starts as
            C{$device:<device_id>}.
        """
        self._device_id = device_id
        self._auto_identify = auto_identify
        self._lock = threading.Lock()
        self._distinct_id: str | None = self.auto_distinct_id

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def auto_identify(self) -> bool:
        return self._auto_identify

    @property
    def auto_distinct_id(self) -> str | None:
        if not self._auto_identify:
            return None
        return f"{AUTO_ID_PREFIX}{self._device_id}"

    def get_distinct_id(self) -> str | None:
        with self._lock:
            return self._distinct_id

    def identify(self, distinct_id: str) -> None:
        """Overwrite the distinct id.

        @raise ValueError: If C{distinct_id} is empty.
        """
        if not distinct_id:
            raise ValueError("Distinct id must not be empty.")
        with self._lock:
            self._distinct_id = distinct_id
        logger.debug(f"Identified as '{distinct_id}'.")

    def reset(self) -> None:
        with self._lock:
            self._distinct_id = None
        logger.debug("Distinct id reset.")

    def effective_id(self) -> str:
        """Return the id events are attributed to when none is given.

        This is the current distinct id, else the auto-identify id,
        else the raw device id.
        """
        distinct_id = self.get_distinct_id()
        if distinct_id is not None:
            return distinct_id
        auto_id = self.auto_distinct_id
        if auto_id is not None:
            return auto_id
        return self._device_id

    def regenerate_auto_distinct_id(self) -> None:
        """Set the distinct id back to the auto-identify id.

        Does nothing when auto-identify is disabled.
        """
        auto_id = self.auto_distinct_id
        if auto_id is None:
            return
        with self._lock:
            self._distinct_id = auto_id
