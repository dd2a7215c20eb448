"""
Minimal actor runtime on top of asyncio.

Each actor reads Envelopes from a bounded asyncio.Queue mailbox and answers
through the Envelope's future, so a caller awaiting ``ask()`` gets exactly the
reply to its own message. The mailbox belongs to the Supervisor rather than to
the actor instance, which lets a restarted actor pick up messages queued while
its predecessor was crashing.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pricewatch.domain.errors import RequestError


@dataclass
class Envelope:
    message: Any
    reply: asyncio.Future


class ActorCrashed(Exception):
    """Raised out of ``Actor.run`` after a failed message has been answered."""

    def __init__(self, actor_name: str, cause: BaseException) -> None:
        super().__init__(f"{actor_name} crashed: {cause!r}")
        self.cause = cause


class Actor(ABC):
    name: str = "actor"

    @abstractmethod
    async def handle(self, message: Any) -> Any:
        """Serve one message and return the reply."""
        ...

    async def run(
        self,
        mailbox: "asyncio.Queue[Envelope]",
        on_success: Optional[Callable[[], None]] = None,
    ) -> None:
        """Serve messages until cancelled or until a handler crashes.

        RequestError replies leave the actor running. Any other exception is
        sent to the caller and then re-raised as ActorCrashed so the
        supervisor can replace this instance.
        """
        while True:
            envelope = await mailbox.get()
            try:
                if envelope.reply.cancelled():
                    continue
                try:
                    result = await self.handle(envelope.message)
                except RequestError as exc:
                    _resolve(envelope.reply, exc=exc)
                except asyncio.CancelledError:
                    if not envelope.reply.done():
                        envelope.reply.cancel()
                    raise
                except Exception as exc:
                    _resolve(envelope.reply, exc=exc)
                    raise ActorCrashed(self.name, exc) from exc
                else:
                    _resolve(envelope.reply, result=result)
                    if on_success is not None:
                        on_success()
            finally:
                mailbox.task_done()


def _resolve(future: asyncio.Future, result: Any = None, exc: Optional[BaseException] = None) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(result)
