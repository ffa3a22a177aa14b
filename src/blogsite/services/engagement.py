"""
# Engagement Tracker

Reader-side engagement: the optimistic like toggle and the best-effort view counter.
Both sit in front of an injected coroutine that performs the actual store call, so they
work the same against `BlogContentGateway` in-process or against the HTTP client SDK.

## Like Toggle

An explicit two-phase state machine:

```
IDLE ──toggle()──▶ PENDING(new value) ──ok──▶ COMMITTED
                        │
                        └──error──▶ ROLLED_BACK(prior value)  + MutationFailure
```

The new value is visible the moment `toggle()` starts; the store call is awaited
afterwards. A failed call restores the exact pre-toggle `liked` flag and displayed
count.

## View Tracker

`mount()` schedules one fire-and-forget increment per tracker instance, i.e. per
detail-page mount. Failures are logged and dropped; `detach()` cancels an in-flight
increment when the page goes away.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

from blogsite.errors import MutationFailure, ValidationFailure
from blogsite.managers.logging_manager import get_logger

logger = get_logger(prefix="[Engagement]")

LIKE_FAILURE_MESSAGE = "Failed to update like"


class LikePhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class LikeToggle:
    """
    Optimistic like state for one rendered post.

    Args:
        adjust: Coroutine function sending the like delta (+1 or -1) to the store.
        liked: Initial like flag.
        likes: Initial displayed like count.
    """

    def __init__(self, adjust: Callable[[int], Awaitable[object]], liked: bool = False, likes: int = 0):
        self._adjust = adjust
        self.liked = liked
        self.likes = likes
        self.phase = LikePhase.IDLE

    @property
    def pending(self) -> bool:
        return self.phase is LikePhase.PENDING

    async def toggle(self) -> bool:
        """
        Flip the like flag, then confirm it with the store.

        Returns:
            bool: The committed like flag.

        Raises:
            ValidationFailure: If a previous toggle is still pending.
            MutationFailure: If the store rejected the delta; state has been rolled back.
        """
        if self.pending:
            raise ValidationFailure("A like update is already in progress")

        prior_liked, prior_likes = self.liked, self.likes
        self.liked = not prior_liked
        delta = 1 if self.liked else -1
        self.likes = max(0, prior_likes + delta)
        self.phase = LikePhase.PENDING

        try:
            await self._adjust(delta)
        except asyncio.CancelledError:
            self._rollback(prior_liked, prior_likes)
            raise
        except Exception as e:
            self._rollback(prior_liked, prior_likes)
            logger.warning("Like delta %+d rejected, rolled back: %s", delta, e)
            raise MutationFailure(LIKE_FAILURE_MESSAGE) from e

        self.phase = LikePhase.COMMITTED
        return self.liked

    def _rollback(self, liked: bool, likes: int) -> None:
        self.liked = liked
        self.likes = likes
        self.phase = LikePhase.ROLLED_BACK


class ViewTracker:
    """Fires a single view increment for one detail-page mount."""

    def __init__(self, increment: Callable[[], Awaitable[object]]):
        self._increment = increment
        self._task: Optional[asyncio.Task] = None
        self.fired = False

    def mount(self) -> Optional[asyncio.Task]:
        """
        Schedule the increment without awaiting it. Must be called from a running loop.

        Returns:
            Optional[asyncio.Task]: The scheduled task, or `None` if this tracker has
            already fired.
        """
        if self.fired:
            return None
        self.fired = True
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> None:
        try:
            await self._increment()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("View increment failed (ignored): %s", e)

    def detach(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
