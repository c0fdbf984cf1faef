"""Session admission control for the math server."""
import threading

from pydantic import BaseModel, Field, PrivateAttr


class AdmissionControl(BaseModel):
    """
    Bound the number of concurrently active sessions.

    ``try_acquire`` takes a slot unless the limit is reached, in which
    case the caller must deny the session. Every successful acquire is
    paired with one ``release`` when the session ends.
    """

    max_sessions: int = Field(default=6, ge=1, description="Maximum number of concurrent sessions")

    _active: int = PrivateAttr(default=0)
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @property
    def active(self) -> int:
        """Number of sessions currently holding a slot."""
        return self._active

    def try_acquire(self) -> bool:
        """
        Take a session slot if one is free.

        :return: True if the session is admitted, False if the limit is reached
        :rtype: bool
        """
        with self._lock:
            if self._active >= self.max_sessions:
                return False
            self._active += 1
            return True

    def release(self) -> None:
        """
        Give back a session slot.

        :raises RuntimeError: If no slot is held
        """
        with self._lock:
            if self._active == 0:
                raise RuntimeError("release() called with no active session")
            self._active -= 1
