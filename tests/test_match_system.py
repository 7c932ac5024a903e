from tilecascade.systems.board import BoardSystem
from tilecascade.systems.board_ops import MatchDirection
from tilecascade.systems.match import MatchSystem

from tests.helpers import build_board, pattern_layout, stalemate_layout


def make_matcher(layout, tile_types=6):
    bus, world, board = build_board(layout, tile_types=tile_types)
    return board, MatchSystem(world, bus, board)


def test_single_horizontal_run_of_three():
    layout = pattern_layout(5, 5)
    layout[0] = [0, 0, 0, 1, 2]
    _, matcher = make_matcher(layout)
    matches = matcher.find_matches()
    assert len(matches) == 1
    match = matches[0]
    assert match.direction is MatchDirection.HORIZONTAL
    assert match.length == 3
    assert match.positions() == [(0, 0), (1, 0), (2, 0)]
    assert match.tile_type == 0


def test_run_of_five_is_one_match():
    layout = pattern_layout(5, 5)
    layout[2] = [5, 5, 5, 5, 5]
    _, matcher = make_matcher(layout)
    matches = matcher.find_matches()
    assert len(matches) == 1
    assert len(matches[0]) == 5


def test_vertical_run_found():
    layout = pattern_layout(5, 5)
    for y in range(1, 5):
        layout[y][3] = 5
    _, matcher = make_matcher(layout)
    matches = matcher.find_matches()
    assert [(m.direction, m.positions()) for m in matches] == [
        (MatchDirection.VERTICAL, [(3, 1), (3, 2), (3, 3), (3, 4)])
    ]


def test_corner_tile_belongs_to_both_directions():
    layout = pattern_layout(5, 5)
    layout[0][0] = layout[0][1] = layout[0][2] = 5
    layout[1][0] = layout[2][0] = 5
    _, matcher = make_matcher(layout)
    matches = matcher.find_matches()
    assert {m.direction for m in matches} == {MatchDirection.HORIZONTAL, MatchDirection.VERTICAL}
    horizontal = next(m for m in matches if m.direction is MatchDirection.HORIZONTAL)
    vertical = next(m for m in matches if m.direction is MatchDirection.VERTICAL)
    assert set(horizontal.positions()) & set(vertical.positions()) == {(0, 0)}


def test_empty_cells_break_runs():
    layout = pattern_layout(5, 5)
    layout[4] = [5, 5, 5, 5, 1]
    board, matcher = make_matcher(layout)
    board.remove_tiles([(2, 4)])
    assert matcher.find_matches() == []


def test_check_match_at_position_counts_both_axes():
    layout = pattern_layout(5, 5)
    layout[0] = [0, 0, 0, 1, 2]
    _, matcher = make_matcher(layout)
    assert matcher.check_match_at_position(1, 0)
    assert matcher.check_match_at_position(0, 0)
    assert not matcher.check_match_at_position(3, 0)
    assert not matcher.check_match_at_position(9, 9)


def test_has_valid_moves_on_solvable_board():
    layout = pattern_layout(5, 5)
    layout[4][0] = layout[4][1] = 5
    layout[3][2] = 5
    _, matcher = make_matcher(layout)
    assert matcher.has_valid_moves()
    assert ((2, 3), (2, 4)) in matcher.find_possible_moves()


def test_stalemate_has_no_valid_moves():
    _, matcher = make_matcher(stalemate_layout(5, 5), tile_types=3)
    assert matcher.find_matches() == []
    assert not matcher.has_valid_moves()
    assert matcher.find_possible_moves() == []


def test_has_valid_moves_leaves_board_untouched():
    layout = pattern_layout(5, 5)
    board, matcher = make_matcher(layout)
    before = matcher.board_hash()
    matcher.has_valid_moves()
    assert matcher.board_hash() == before
    for tile in board.all_tiles():
        assert board.get_tile(tile.x, tile.y) is tile


def test_board_hash_encodes_types_and_gaps():
    layout = [[0, 1, 2, 3], [1, 2, 3, 0], [2, 3, 0, 1], [3, 0, 1, 2]]
    board, matcher = make_matcher(layout)
    board.remove_tiles([(0, 0)])
    assert matcher.board_hash() == "-123" "1230" "2301" "3012"


def test_matcher_scans_its_own_board_when_world_holds_two():
    bus, world, first = build_board(pattern_layout(5, 5))
    second = BoardSystem(world, bus)
    layout = pattern_layout(5, 5)
    layout[0] = [5, 5, 5, 1, 2]
    second.populate(layout)
    matcher = MatchSystem(world, bus, second)

    assert [match.positions() for match in matcher.find_matches()] == [[(0, 0), (1, 0), (2, 0)]]
    assert MatchSystem(world, bus, first).find_matches() == []
