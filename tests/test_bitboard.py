"""Tests for bitboard geometry."""

from bitboard import (
    BOARD, TOTAL, PLACEMENTS,
    cell_bit, ship_cells, ship_bits, halo_bits, popcount, iter_cells,
    bits_to_grid, in_bounds,
)


class TestCells:
    """Bit indexing and ship masks."""

    def test_bit_index_is_row_major(self):
        """Bit index is y * 10 + x."""
        assert cell_bit(0, 0) == 1
        assert cell_bit(3, 2) == 1 << 23
        assert cell_bit(9, 9) == 1 << (TOTAL - 1)

    def test_in_bounds(self):
        assert in_bounds(0, 0) and in_bounds(9, 9)
        assert not in_bounds(10, 0)
        assert not in_bounds(0, -1)

    def test_horizontal_ship_extends_along_x(self):
        assert ship_cells(2, 3, 3, True) == [(2, 3), (3, 3), (4, 3)]
        assert ship_cells(2, 3, 3, False) == [(2, 3), (2, 4), (2, 5)]

    def test_ship_leaving_board_has_no_bits(self):
        """Out-of-bounds ships map to 0 rather than a clipped mask."""
        assert ship_bits(8, 0, 3, True) == 0
        assert ship_bits(0, 8, 3, False) == 0
        assert popcount(ship_bits(7, 0, 3, True)) == 3


class TestHalo:
    """8-neighbourhood expansion."""

    def test_corner_halo(self):
        assert popcount(halo_bits(cell_bit(0, 0))) == 4

    def test_centre_halo(self):
        assert popcount(halo_bits(cell_bit(5, 5))) == 9

    def test_halo_does_not_wrap_rows(self):
        """A cell on the right edge must not touch the next row's first cell."""
        halo = halo_bits(cell_bit(9, 0))
        assert popcount(halo) == 4
        assert not halo & cell_bit(0, 1)
        assert not halo_bits(cell_bit(0, 1)) & cell_bit(9, 0)

    def test_ship_halo(self):
        """A horizontal 2-ship in open water covers 4x3 cells with its halo."""
        assert popcount(halo_bits(ship_bits(4, 4, 2, True))) == 12


class TestConversions:
    """Grid <-> bitboard conversions."""

    def test_iter_cells_lowest_first(self):
        bits = cell_bit(3, 2) | cell_bit(0, 0)
        assert list(iter_cells(bits)) == [(0, 0), (3, 2)]

    def test_grid_is_indexed_y_x(self):
        grid = bits_to_grid(cell_bit(7, 1))
        assert grid.shape == (BOARD, BOARD)
        assert grid[1, 7] == 1.0
        assert grid.sum() == 1.0


class TestPlacementTable:
    """Precomputed in-bounds placements per ship length."""

    def test_placement_counts(self):
        assert len(PLACEMENTS[1]) == 100
        assert len(PLACEMENTS[2]) == 2 * 9 * 10
        assert len(PLACEMENTS[4]) == 2 * 7 * 10

    def test_entries_are_consistent(self):
        for length, entries in PLACEMENTS.items():
            for x, y, horizontal, bits, halo in entries:
                assert bits == ship_bits(x, y, length, horizontal)
                assert halo == halo_bits(bits)
