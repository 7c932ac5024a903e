from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence, Type

from esper import World

from tilecascade.animation_factory import AnimationFactory
from tilecascade.components.animation_fade import FadeAnimation
from tilecascade.components.animation_fall import FallAnimation
from tilecascade.components.animation_refill import RefillAnimation
from tilecascade.components.animation_swap import SwapAnimation
from tilecascade.components.duration import Duration
from tilecascade.errors import AnimationStopped
from tilecascade.events.bus import EventBus, GameEvent

logger = logging.getLogger(__name__)


class AnimationKind(Enum):
    SWAP = "swap"
    REMOVE = "remove"
    FALL = "fall"
    SPAWN = "spawn"


COMPONENT_FOR_KIND: Dict[AnimationKind, Type] = {
    AnimationKind.SWAP: SwapAnimation,
    AnimationKind.REMOVE: FadeAnimation,
    AnimationKind.FALL: FallAnimation,
    AnimationKind.SPAWN: RefillAnimation,
}


@dataclass(slots=True)
class _Batch:
    kind: AnimationKind
    items: List[Any]
    entities: List[int]
    future: asyncio.Future


class AnimationSystem:
    """Drives timing of animation batches; each animated item is its own entity.

    ``play`` is awaited by the engine and resolves once every entity of the
    batch has run its full duration, measured in TICK ``dt`` seconds.
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.factory = AnimationFactory(world)
        self._batches: Dict[int, _Batch] = {}
        self._next_batch = 0
        event_bus.subscribe(GameEvent.TICK, self.on_tick)

    @property
    def pending(self) -> int:
        return len(self._batches)

    def _create_entities(self, kind: AnimationKind, batch: int, items: Sequence[Any], duration: float) -> List[int]:
        if kind is AnimationKind.SWAP:
            return self.factory.create_swap_group(batch, items, duration)
        if kind is AnimationKind.REMOVE:
            return self.factory.create_fade_group(batch, items, duration)
        if kind is AnimationKind.FALL:
            return self.factory.create_fall_group(batch, items, duration)
        return self.factory.create_refill_group(batch, items, duration)

    async def play(self, kind: AnimationKind, items: Sequence[Any], duration: float) -> None:
        self._next_batch += 1
        batch = self._next_batch
        items = list(items)
        self.event_bus.emit(GameEvent.ANIMATION_START, kind=kind, items=items, batch=batch)
        if duration <= 0 or not items:
            self.event_bus.emit(GameEvent.ANIMATION_COMPLETE, kind=kind, items=items, batch=batch)
            return
        future = asyncio.get_running_loop().create_future()
        entities = self._create_entities(kind, batch, items, duration)
        self._batches[batch] = _Batch(kind=kind, items=items, entities=entities, future=future)
        await future

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get("dt", 1 / 60)
        for batch_id, batch in list(self._batches.items()):
            finished = [self._advance(ent, COMPONENT_FOR_KIND[batch.kind], dt) for ent in batch.entities]
            if all(finished):
                self._finish(batch_id)

    def _advance(self, ent: int, comp_type: Type, dt: float) -> bool:
        step = dt / self.world.component_for_entity(ent, Duration).value
        comp = self.world.component_for_entity(ent, comp_type)
        if comp_type is FadeAnimation:
            comp.alpha = max(0.0, comp.alpha - step)
            return comp.alpha <= 0.0
        if comp_type is SwapAnimation:
            comp.progress = min(1.0, comp.progress + step)
            return comp.progress >= 1.0
        comp.linear = min(1.0, comp.linear + step)
        return comp.linear >= 1.0

    def _delete_batch_entities(self, batch: _Batch) -> None:
        for ent in batch.entities:
            if self.world.entity_exists(ent):
                self.world.delete_entity(ent, immediate=True)

    def _finish(self, batch_id: int) -> None:
        batch = self._batches.pop(batch_id)
        self._delete_batch_entities(batch)
        if not batch.future.done():
            batch.future.set_result(None)
        self.event_bus.emit(GameEvent.ANIMATION_COMPLETE, kind=batch.kind, items=batch.items, batch=batch_id)

    def stop_all(self) -> None:
        """Drop every running batch and fail its pending wait with AnimationStopped."""
        if self._batches:
            logger.info("Stopping %d animation batch(es)", len(self._batches))
        for batch_id, batch in list(self._batches.items()):
            self._delete_batch_entities(batch)
            if not batch.future.done():
                batch.future.set_exception(
                    AnimationStopped(f"{batch.kind.value} animation stopped", details={"batch": batch_id})
                )
        self._batches.clear()
