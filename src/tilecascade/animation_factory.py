from typing import List, Sequence, Tuple

from esper import World

from tilecascade.components.animation_fade import FadeAnimation
from tilecascade.components.animation_fall import FallAnimation
from tilecascade.components.animation_refill import RefillAnimation
from tilecascade.components.animation_swap import SwapAnimation
from tilecascade.components.duration import Duration
from tilecascade.components.tile import Tile
from tilecascade.systems.board_ops import GravityMove

Position = Tuple[int, int]


class AnimationFactory:
    def __init__(self, world: World):
        self.world = world

    def create_swap_group(self, batch: int, pairs: Sequence[Tuple[Position, Position]], duration: float) -> List[int]:
        return [
            self.world.create_entity(SwapAnimation(batch=batch, src=src, dst=dst), Duration(duration))
            for src, dst in pairs
        ]

    def create_fade_group(self, batch: int, tiles: Sequence[Tile], duration: float) -> List[int]:
        return [
            self.world.create_entity(
                FadeAnimation(batch=batch, pos=(tile.x, tile.y), tile_id=tile.id), Duration(duration)
            )
            for tile in tiles
        ]

    def create_fall_group(self, batch: int, moves: Sequence[GravityMove], duration: float) -> List[int]:
        return [
            self.world.create_entity(
                FallAnimation(batch=batch, src=move.source, dst=move.target, tile_id=move.tile.id),
                Duration(duration),
            )
            for move in moves
        ]

    def create_refill_group(self, batch: int, tiles: Sequence[Tile], duration: float) -> List[int]:
        return [
            self.world.create_entity(
                RefillAnimation(batch=batch, pos=(tile.x, tile.y), tile_id=tile.id), Duration(duration)
            )
            for tile in tiles
        ]
