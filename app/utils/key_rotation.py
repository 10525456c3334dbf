"""
API key pool for providers that accept several keys
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Any

from loguru import logger


@dataclass
class KeyState:
    """Usage and health of one API key"""
    key: str
    uses: int = 0
    consecutive_errors: int = 0
    cooldown_until: Optional[datetime] = None

    @property
    def label(self) -> str:
        return self.key[:8] + "..."


class ApiKeyPool:
    """
    Hand out keys round-robin, benching a key after repeated failures

    A benched key rejoins the rotation once its cooldown has passed.
    """

    def __init__(
        self,
        keys: List[str],
        max_errors_per_key: int = 3,
        cooldown_minutes: int = 5,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.keys = [key.strip() for key in keys if key and key.strip()]
        if not self.keys:
            raise ValueError("At least one API key must be provided")

        self.max_errors_per_key = max_errors_per_key
        self.cooldown = timedelta(minutes=cooldown_minutes)
        self._clock = clock
        self._states: Dict[str, KeyState] = {key: KeyState(key=key) for key in self.keys}
        self._cursor = 0
        self._lock = asyncio.Lock()

        logger.info(f"Initialized ApiKeyPool with {len(self.keys)} keys")

    async def acquire(self) -> Optional[str]:
        """
        Pick the next usable key

        Returns:
            A key, or None if every key is cooling down
        """
        async with self._lock:
            now = self._clock()
            for offset in range(len(self.keys)):
                index = (self._cursor + offset) % len(self.keys)
                state = self._states[self.keys[index]]
                if state.cooldown_until and now < state.cooldown_until:
                    continue
                if state.cooldown_until:
                    logger.info(f"Key {state.label} back in rotation after cooldown")
                    state.cooldown_until = None
                    state.consecutive_errors = 0
                self._cursor = index + 1
                state.uses += 1
                return state.key

            logger.warning("All API keys are cooling down")
            return None

    async def report_error(self, key: str, error: Exception) -> None:
        async with self._lock:
            state = self._states.get(key)
            if state is None:
                return
            state.consecutive_errors += 1
            logger.warning(f"Error on key {state.label}: {error} ({state.consecutive_errors} in a row)")
            if state.consecutive_errors >= self.max_errors_per_key:
                state.cooldown_until = self._clock() + self.cooldown
                logger.error(f"Key {state.label} benched until {state.cooldown_until}")

    async def report_success(self, key: str) -> None:
        async with self._lock:
            state = self._states.get(key)
            if state is not None:
                state.consecutive_errors = 0

    async def snapshot(self) -> List[Dict[str, Any]]:
        """Key health without exposing full keys"""
        async with self._lock:
            now = self._clock()
            return [
                {
                    "key": state.label,
                    "uses": state.uses,
                    "consecutive_errors": state.consecutive_errors,
                    "cooling_down": bool(state.cooldown_until and now < state.cooldown_until),
                }
                for state in self._states.values()
            ]
