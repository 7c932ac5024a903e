import pytest

from tilecascade.config import (
    BoardConfig,
    GameConfig,
    RenderingConfig,
    ScoringConfig,
    TimerConfig,
    validate_config,
)
from tilecascade.errors import ConfigError, ErrorType, GameError
from tilecascade.events.bus import EventBus
from tilecascade.world import create_world


def test_defaults_are_valid():
    config = validate_config(GameConfig())
    assert (config.board.rows, config.board.cols, config.board.tile_types) == (8, 8, 5)
    assert config.scoring.base_score == 10
    assert config.scoring.combo_multiplier == 1.5
    assert config.special_tiles.bomb_range == 1
    assert config.timer.default_time == 60.0


@pytest.mark.parametrize(
    "config",
    [
        GameConfig(board=BoardConfig(rows=3)),
        GameConfig(board=BoardConfig(cols=21)),
        GameConfig(board=BoardConfig(tile_types=2)),
        GameConfig(board=BoardConfig(tile_types=11)),
        GameConfig(rendering=RenderingConfig(tile_size=16)),
        GameConfig(scoring=ScoringConfig(base_score=0)),
        GameConfig(scoring=ScoringConfig(combo_multiplier=0.5)),
        GameConfig(timer=TimerConfig(default_time=30.0, warning_time=45.0)),
    ],
)
def test_out_of_range_config_rejected(config):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError) as excinfo:
        validate_config(GameConfig(board=BoardConfig(rows=50)))
    err = excinfo.value
    assert isinstance(err, GameError)
    assert err.error_type is ErrorType.CONFIG
    assert err.details["field"] == "board.rows"


def test_create_world_validates_eagerly():
    with pytest.raises(ConfigError):
        create_world(EventBus(), GameConfig(board=BoardConfig(tile_types=20)))


def test_from_mapping_builds_sections():
    config = GameConfig.from_mapping({"board": {"rows": 6, "cols": 7}, "timer": {"default_time": 90}})
    assert config.board.rows == 6
    assert config.board.cols == 7
    assert config.board.tile_types == 5
    assert config.timer.default_time == 90


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ConfigError):
        GameConfig.from_mapping({"board": {"depth": 3}})
    with pytest.raises(ConfigError):
        GameConfig.from_mapping({"physics": {}})
