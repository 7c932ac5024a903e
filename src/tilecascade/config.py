"""Game configuration consumed by the rules engine.

Defaults come from ``tilecascade.constants``; ``validate_config`` enforces the
startup limits and is called eagerly by ``create_world``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from tilecascade import constants as C
from tilecascade.errors import ConfigError


@dataclass(slots=True)
class BoardConfig:
    rows: int = C.GRID_ROWS
    cols: int = C.GRID_COLS
    tile_types: int = C.TILE_TYPES


@dataclass(slots=True)
class RenderingConfig:
    tile_size: int = C.TILE_SIZE


@dataclass(slots=True)
class AnimationConfig:
    swap_duration: float = C.SWAP_DURATION
    remove_duration: float = C.REMOVE_DURATION
    fall_duration: float = C.FALL_DURATION
    spawn_duration: float = C.SPAWN_DURATION
    shuffle_delay: float = C.SHUFFLE_DELAY


@dataclass(slots=True)
class ScoringConfig:
    base_score: int = C.BASE_SCORE
    combo_multiplier: float = C.COMBO_MULTIPLIER
    match4_bonus: int = C.MATCH4_BONUS
    match5_bonus: int = C.MATCH5_BONUS
    special_tile_multiplier: int = C.SPECIAL_TILE_MULTIPLIER


@dataclass(slots=True)
class SpecialTileConfig:
    bomb_range: int = C.BOMB_RANGE


@dataclass(slots=True)
class TimerConfig:
    default_time: float = C.DEFAULT_TIME
    warning_time: float = C.WARNING_TIME


@dataclass(slots=True)
class GameConfig:
    board: BoardConfig = field(default_factory=BoardConfig)
    rendering: RenderingConfig = field(default_factory=RenderingConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    special_tiles: SpecialTileConfig = field(default_factory=SpecialTileConfig)
    timer: TimerConfig = field(default_factory=TimerConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> "GameConfig":
        """Build a config from nested plain mappings, e.g. loaded JSON."""
        sections = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for section_name, values in data.items():
            if section_name not in sections:
                raise ConfigError(f"Unknown config section: {section_name}")
            section_type = type(getattr(cls(), section_name))
            allowed = {f.name for f in fields(section_type)}
            unknown = set(values) - allowed
            if unknown:
                raise ConfigError(
                    f"Unknown keys in config section {section_name}: {sorted(unknown)}",
                    details={"section": section_name, "keys": sorted(unknown)},
                )
            kwargs[section_name] = section_type(**values)
        return cls(**kwargs)


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not (low <= value <= high):
        raise ConfigError(
            f"{name} must be between {low} and {high} (got {value})",
            details={"field": name, "value": value},
        )


def validate_config(config: GameConfig) -> GameConfig:
    """Raise ConfigError when any setting is outside its supported range."""
    board = config.board
    _check_range("board.rows", board.rows, C.MIN_GRID_SIZE, C.MAX_GRID_SIZE)
    _check_range("board.cols", board.cols, C.MIN_GRID_SIZE, C.MAX_GRID_SIZE)
    _check_range("board.tile_types", board.tile_types, C.MIN_TILE_TYPES, C.MAX_TILE_TYPES)
    _check_range("rendering.tile_size", config.rendering.tile_size, C.MIN_TILE_SIZE, C.MAX_TILE_SIZE)

    for f in fields(config.animation):
        value = getattr(config.animation, f.name)
        if value < 0:
            raise ConfigError(f"animation.{f.name} must not be negative (got {value})")

    scoring = config.scoring
    if scoring.base_score <= 0:
        raise ConfigError(f"scoring.base_score must be positive (got {scoring.base_score})")
    if scoring.combo_multiplier < 1:
        raise ConfigError(f"scoring.combo_multiplier must be at least 1 (got {scoring.combo_multiplier})")
    for name in ("match4_bonus", "match5_bonus", "special_tile_multiplier"):
        value = getattr(scoring, name)
        if value < 0:
            raise ConfigError(f"scoring.{name} must not be negative (got {value})")

    if config.special_tiles.bomb_range < 1:
        raise ConfigError(f"special_tiles.bomb_range must be at least 1 (got {config.special_tiles.bomb_range})")

    timer = config.timer
    if timer.default_time <= 0:
        raise ConfigError(f"timer.default_time must be positive (got {timer.default_time})")
    _check_range("timer.warning_time", timer.warning_time, 0, timer.default_time)
    return config
