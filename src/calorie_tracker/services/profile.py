"""Profile state holder with eager goal recompute and coalesced saves."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from calorie_tracker.domain.errors import ProfileUnavailableError
from calorie_tracker.domain.profile import Profile
from calorie_tracker.domain.results import ErrorKind, Result
from calorie_tracker.services.boundary import guard, guard_async
from calorie_tracker.services.goals import apply_goals
from calorie_tracker.services.macros import validate_macro_split

_logger = logging.getLogger(__name__)

_DERIVED_FIELDS = {"uid", "bmr", "tdee", "calorie_goal"}


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, uid: str) -> Profile | None:
        """Return the stored profile, if any."""

    def save_profile(self, profile: Profile) -> None:
        """Insert or replace the stored profile."""


@dataclass
class SaveQueue:
    """Latest-write-wins save scheduler.

    Every submitted profile gets a version. After the debounce delay a save
    only persists if its version is still the newest one, and persists run
    one at a time so an older write can never land after a newer one.
    """

    persist: Callable[[Profile], None]
    debounce_seconds: float = 0.5
    version: int = 0
    saved_version: int = 0
    last_result: Result[bool] | None = None
    _tasks: set[asyncio.Task] = field(default_factory=set)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _flush_requested: asyncio.Event = field(default_factory=asyncio.Event)

    def submit(self, profile: Profile) -> int:
        """Schedule a save of the profile and return its version."""
        self.version += 1
        task = asyncio.create_task(self._run(self.version, profile))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return self.version

    async def drain(self) -> None:
        """Skip the remaining debounce and wait for scheduled saves."""
        self._flush_requested.set()
        try:
            while self._tasks:
                await asyncio.gather(*list(self._tasks))
        finally:
            self._flush_requested.clear()

    async def _run(self, version: int, profile: Profile) -> None:
        await self._debounce()
        async with self._lock:
            if version != self.version:
                _logger.debug("Skipping superseded profile save v%s", version)
                return
            result = await guard_async(
                lambda: asyncio.to_thread(self.persist, profile),
                default=None,
                kind=ErrorKind.PERSISTENCE,
                action=f"save_profile:{profile.uid}",
            )
        if version != self.version:
            _logger.debug("Discarding stale profile save completion v%s", version)
            return
        self.last_result = Result(value=result.ok, error=result.error, detail=result.detail)
        if result.ok:
            self.saved_version = version

    async def _debounce(self) -> None:
        if self.debounce_seconds <= 0:
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(
                self._flush_requested.wait(), timeout=self.debounce_seconds
            )


@dataclass
class ProfileService:
    """Holds each user's current profile and funnels edits into saves."""

    repository: ProfileRepository
    save_debounce_seconds: float = 0.5
    _profiles: dict[str, Profile] = field(default_factory=dict)
    _queues: dict[str, SaveQueue] = field(default_factory=dict)

    def load(self, uid: str) -> Result[Profile]:
        """Return the in-memory profile, loading it on first access.

        A missing or unreadable profile falls back to defaults; a failed read
        is not cached so the next call retries.
        """
        cached = self._profiles.get(uid)
        if cached is not None:
            return Result.success(cached)
        result = guard(
            lambda: self.repository.get_profile(uid),
            default=None,
            kind=ErrorKind.PERSISTENCE,
            action=f"get_profile:{uid}",
        )
        profile = apply_goals(result.value or Profile(uid=uid))
        if result.ok:
            self._profiles[uid] = profile
        return Result(value=profile, error=result.error, detail=result.detail)

    def edit(self, uid: str, **changes: object) -> Profile:
        """Apply field changes, recompute goals and schedule an auto-save.

        Must be called from a running event loop. Raises
        ProfileUnavailableError when the stored profile cannot be read.
        """
        unknown = _DERIVED_FIELDS.intersection(changes)
        if unknown:
            raise ValueError(f"Derived fields cannot be edited: {sorted(unknown)}")
        updated = apply_goals(replace(self._writable(uid), **changes))
        self._profiles[uid] = updated
        self._queue(uid).submit(updated)
        return updated

    async def flush(self, uid: str) -> Result[bool] | None:
        """Persist any pending edit now and return the outcome of the last save."""
        queue = self._queues.get(uid)
        if queue is None:
            return None
        await queue.drain()
        return queue.last_result

    def pending_uids(self) -> list[str]:
        """Return users whose latest edit has not been persisted yet."""
        return [
            uid
            for uid, queue in self._queues.items()
            if queue.saved_version != queue.version
        ]

    async def save_explicit(self, uid: str) -> Profile:
        """Validate and persist the current profile immediately.

        Raises MacroSplitError when macros do not total 100% and
        ProfileUnavailableError when the stored profile cannot be read.
        Persistence failures propagate to the caller.
        """
        profile = self._writable(uid)
        validate_macro_split(profile.macro_split)
        await self.flush(uid)
        await asyncio.to_thread(self.repository.save_profile, profile)
        return profile

    def sync(self, profile: Profile) -> Profile:
        """Replace a user's profile wholesale and persist it."""
        validate_macro_split(profile.macro_split)
        updated = apply_goals(profile)
        self.repository.save_profile(updated)
        self._profiles[updated.uid] = updated
        return updated

    def _writable(self, uid: str) -> Profile:
        result = self.load(uid)
        if not result.ok:
            raise ProfileUnavailableError(uid)
        return result.value

    def _queue(self, uid: str) -> SaveQueue:
        queue = self._queues.get(uid)
        if queue is None:
            queue = SaveQueue(
                persist=self.repository.save_profile,
                debounce_seconds=self.save_debounce_seconds,
            )
            self._queues[uid] = queue
        return queue
