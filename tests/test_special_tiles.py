from tilecascade.components.tile import SpecialKind
from tilecascade.systems.board_ops import MatchDirection
from tilecascade.systems.match import MatchSystem
from tilecascade.systems.special_tiles import ComboKind, SpecialTileSystem

from tests.helpers import build_board, pattern_layout


def make_systems(layout=None, tile_types=6):
    layout = layout or pattern_layout(8, 8)
    bus, world, board = build_board(layout, tile_types=tile_types)
    return board, MatchSystem(world, bus, board), SpecialTileSystem(world, bus, board)


def promote(board, x, y, kind):
    return board.create_special_tile(x, y, kind)


# ----------------------------------------------------------------------
# Generation
# ----------------------------------------------------------------------
def test_four_in_a_row_makes_bomb_at_middle():
    layout = pattern_layout(8, 8)
    layout[3][1:5] = [5, 5, 5, 5]
    _, matcher, specials = make_systems(layout)
    info = specials.detect_special_tile_generation(matcher.find_matches())
    assert info.kind is SpecialKind.BOMB
    assert info.position == (3, 3)
    assert info.match_direction is MatchDirection.HORIZONTAL
    assert info.match_length == 4


def test_five_in_a_column_makes_color_bomb():
    layout = pattern_layout(8, 8)
    for y in range(2, 7):
        layout[y][6] = 5
    _, matcher, specials = make_systems(layout)
    info = specials.detect_special_tile_generation(matcher.find_matches())
    assert info.kind is SpecialKind.COLOR_BOMB
    assert info.position == (6, 4)
    assert info.match_length == 5


def test_longest_match_wins():
    layout = pattern_layout(8, 8)
    layout[0][0:4] = [5, 5, 5, 5]
    layout[7][0:5] = [5, 5, 5, 5, 5]
    _, matcher, specials = make_systems(layout)
    info = specials.detect_special_tile_generation(matcher.find_matches())
    assert info.kind is SpecialKind.COLOR_BOMB
    assert info.position == (2, 7)


def test_l_shape_makes_row_clear_at_corner():
    layout = pattern_layout(8, 8)
    layout[5][2:5] = [5, 5, 5]
    layout[3][2] = layout[4][2] = 5
    _, matcher, specials = make_systems(layout)
    info = specials.detect_special_tile_generation(matcher.find_matches())
    assert info.kind is SpecialKind.ROW_CLEAR
    assert info.position == (2, 5)
    assert info.l_shape
    assert info.match_length == 6


def test_plain_three_makes_nothing():
    layout = pattern_layout(8, 8)
    layout[0][0:3] = [5, 5, 5]
    _, matcher, specials = make_systems(layout)
    assert specials.detect_special_tile_generation(matcher.find_matches()) is None
    assert specials.detect_special_tile_generation([]) is None


# ----------------------------------------------------------------------
# Activation
# ----------------------------------------------------------------------
def test_bomb_blast_is_clipped_block():
    board, _, specials = make_systems()
    center = promote(board, 4, 4, SpecialKind.BOMB)
    positions = specials.detect_special_tile_activation(center)
    assert len(positions) == 9
    assert (4, 4) in positions
    corner = promote(board, 0, 0, SpecialKind.BOMB)
    assert sorted(specials.detect_special_tile_activation(corner)) == [(0, 0), (0, 1), (1, 0), (1, 1)]


def test_row_clear_covers_full_row():
    board, _, specials = make_systems()
    tile = promote(board, 2, 6, SpecialKind.ROW_CLEAR)
    positions = specials.detect_special_tile_activation(tile)
    assert len(positions) == 8
    assert {y for _, y in positions} == {6}


def test_col_clear_skips_empty_cells():
    board, _, specials = make_systems()
    tile = promote(board, 5, 7, SpecialKind.COL_CLEAR)
    board.remove_tiles([(5, 0)])
    positions = specials.detect_special_tile_activation(tile)
    assert len(positions) == 7
    assert (5, 0) not in positions


def test_color_bomb_targets_partner_type_and_itself():
    board, _, specials = make_systems()
    bomb = promote(board, 0, 0, SpecialKind.COLOR_BOMB)
    partner = board.get_tile(1, 0)
    positions = specials.detect_special_tile_activation(bomb, partner)
    expected = {(t.x, t.y) for t in board.all_tiles() if t.type == partner.type}
    assert set(positions) == expected | {(0, 0)}
    assert specials.detect_special_tile_activation(bomb) == []


def test_normal_tile_activates_nothing():
    board, _, specials = make_systems()
    assert specials.detect_special_tile_activation(board.get_tile(3, 3)) == []


# ----------------------------------------------------------------------
# Combos
# ----------------------------------------------------------------------
def test_double_bomb_is_five_by_five():
    board, _, specials = make_systems()
    first = promote(board, 4, 4, SpecialKind.BOMB)
    second = promote(board, 4, 5, SpecialKind.BOMB)
    combo = specials.detect_special_combo(first, second)
    assert combo.kind is ComboKind.BOMB_BOMB
    assert len(combo.positions) == 25
    assert (2, 2) in combo.positions and (6, 6) in combo.positions


def test_bomb_with_row_clear_hits_three_rows():
    board, _, specials = make_systems()
    line = promote(board, 3, 0, SpecialKind.ROW_CLEAR)
    bomb = promote(board, 3, 1, SpecialKind.BOMB)
    combo = specials.detect_special_combo(line, bomb)
    assert combo.kind is ComboKind.BOMB_LINE
    # Bomb sits on row 1, so rows 0..2 are cleared.
    assert {y for _, y in combo.positions} == {0, 1, 2}
    assert len(combo.positions) == 24


def test_bomb_with_col_clear_hits_three_columns():
    board, _, specials = make_systems()
    bomb = promote(board, 7, 3, SpecialKind.BOMB)
    line = promote(board, 6, 3, SpecialKind.COL_CLEAR)
    combo = specials.detect_special_combo(bomb, line)
    assert {x for x, _ in combo.positions} == {6, 7}
    assert len(combo.positions) == 16


def test_color_bomb_combo_clears_board():
    board, _, specials = make_systems()
    first = promote(board, 1, 1, SpecialKind.COLOR_BOMB)
    second = promote(board, 2, 1, SpecialKind.BOMB)
    combo = specials.detect_special_combo(first, second)
    assert combo.kind is ComboKind.COLOR_BOMB
    assert len(combo.positions) == 64


def test_cross_combo_has_no_duplicates():
    board, _, specials = make_systems()
    row = promote(board, 2, 2, SpecialKind.ROW_CLEAR)
    col = promote(board, 2, 3, SpecialKind.COL_CLEAR)
    combo = specials.detect_special_combo(row, col)
    assert combo.kind is ComboKind.CROSS
    assert len(combo.positions) == len(set(combo.positions)) == 15
    assert (2, 2) in combo.positions


def test_unmatched_pairs_have_no_combo():
    board, _, specials = make_systems()
    first = promote(board, 2, 2, SpecialKind.ROW_CLEAR)
    second = promote(board, 3, 2, SpecialKind.ROW_CLEAR)
    assert specials.detect_special_combo(first, second) is None
    assert specials.detect_special_combo(first, board.get_tile(5, 5)) is None


def test_special_bonus_factors():
    _, _, specials = make_systems()
    assert specials.calculate_special_bonus(SpecialKind.BOMB, 9) == 180
    assert specials.calculate_special_bonus(SpecialKind.COLOR_BOMB, 4) == 200
    assert specials.calculate_special_bonus(SpecialKind.ROW_CLEAR, 8) == 240
    assert specials.calculate_special_bonus(SpecialKind.COL_CLEAR, 8) == 240
    assert specials.calculate_special_bonus(SpecialKind.NONE, 8) == 0
