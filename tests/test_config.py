import unittest

from config import SETTINGS
from solver.catalog import normalized_shape, rotate_shape


class BoardSettingsTest(unittest.TestCase):
    def test_board_excludes_three_corners(self):
        board = SETTINGS.BOARD
        self.assertEqual((4, 4), (board.width, board.height))
        self.assertEqual(frozenset({0, 3, 12}), board.unusable)
        self.assertEqual(13, board.usable_count)


class PieceOffsetSettingsTest(unittest.TestCase):
    def test_rotations_are_successive_quarter_turns(self):
        for piece, rotations in SETTINGS.PIECE_OFFSETS.items():
            shapes = [normalized_shape(rotation) for rotation in rotations]
            for index, shape in enumerate(shapes):
                with self.subTest(piece=piece, rotation=index):
                    following = shapes[(index + 1) % len(shapes)]
                    self.assertEqual(following, rotate_shape(shape))

    def test_rotation_counts(self):
        counts = {piece: len(rotations) for piece, rotations in SETTINGS.PIECE_OFFSETS.items()}
        self.assertEqual({"a": 4, "b": 2, "c": 4}, counts)


class ModeSettingsTest(unittest.TestCase):
    def test_piece_area_matches_free_cells(self):
        usable = SETTINGS.BOARD.usable_count
        for mode in (SETTINGS.DAY, SETTINGS.NIGHT):
            with self.subTest(mode=mode.name):
                area = sum(len(SETTINGS.PIECE_OFFSETS[piece][0]) + 1 for piece in mode.pieces)
                free = usable - mode.peg_count - mode.wildcard_count + mode.replacements
                self.assertEqual(free, area)

    def test_modes_are_keyed_by_name(self):
        self.assertEqual({"day", "night"}, set(SETTINGS.MODES))
        self.assertIs(SETTINGS.NIGHT, SETTINGS.MODES["night"])

    def test_every_piece_has_a_colour(self):
        for piece in SETTINGS.PIECE_OFFSETS:
            with self.subTest(piece=piece):
                self.assertIn(piece, SETTINGS.PIECE_COLORS)


if __name__ == "__main__":
    unittest.main()
