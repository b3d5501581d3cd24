import unittest
from typing import List, Optional, Sequence

from config import SETTINGS, BoardConfig
from solver.backtracking_solver import BacktrackingSolver
from solver.catalog import PieceCatalog
from solver.models import EMPTY, PEG, Board, Snapshot
from solver.placement import PlacementEngine


DOMINOES = {
    "d": (((1, 0),), ((0, 1),)),
    "e": (((1, 0),), ((0, 1),)),
}

# Day puzzle with pegs on 1, 2 and 13 has two completions, in search order.
PEGS_1_2_13_PUZZLE = (
    "", "p", "p", "",
    "#", "#", "#", "#",
    "#", "#", "#", "#",
    "", "p", "#", "#",
)
PEGS_1_2_13_SOLUTIONS = [
    (
        "", "p", "p", "",
        "a", "c", "C", "b",
        "A", "a", "c", "B",
        "", "p", "c", "b",
    ),
    (
        "", "p", "p", "",
        "C", "c", "c", "b",
        "c", "a", "A", "B",
        "", "p", "a", "b",
    ),
]

# Night puzzle: pegs on 1, 2 and 10, wildcard on 13.
NIGHT_PUZZLE = (
    "", "p", "p", "",
    "#", "#", "#", "#",
    "#", "#", "p", "#",
    "", "w", "#", "#",
)
NIGHT_SOLUTION = (
    "", "p", "p", "",
    "C", "c", "c", "b",
    "c", "a", "A", "B",
    "", "w", "a", "b",
)


class RecordingEngine(PlacementEngine):
    """Placement engine that checks occupancy after every place and remove."""

    def __init__(self, catalog: PieceCatalog, test: unittest.TestCase) -> None:
        super().__init__(catalog)
        self.test = test
        self.active_cells = 0

    def place(self, board, piece, rotation, anchor):
        super().place(board, piece, rotation, anchor)
        self.active_cells += self.catalog.cell_count(piece)
        self._check(board)

    def remove(self, board, piece, rotation, anchor, restore_state=EMPTY):
        super().remove(board, piece, rotation, anchor, restore_state)
        self.active_cells -= self.catalog.cell_count(piece)
        self._check(board)

    def _check(self, board: Board) -> None:
        occupied = sum(1 for cell in board.cells if cell.piece is not None)
        self.test.assertEqual(self.active_cells, occupied)


def build_solver(
    board: Board,
    offsets,
    board_config: BoardConfig,
    pieces: Sequence[str],
    replacements: int = 0,
    engine: Optional[PlacementEngine] = None,
):
    solutions: List[Snapshot] = []
    if engine is None:
        engine = PlacementEngine(PieceCatalog(offsets, board_config))
    solver = BacktrackingSolver(
        board,
        engine,
        pieces,
        lambda solved: solutions.append(solved.snapshot()),
        replacements=replacements,
    )
    return solver, solutions


class ReducedBoardTests(unittest.TestCase):
    def test_two_cell_board_with_matching_orientation(self):
        config = BoardConfig(2, 1, frozenset())
        solver, solutions = build_solver(
            Board.from_config(config), {"d": (((1, 0),),)}, config, ["d"]
        )
        self.assertEqual(1, solver.solve())
        self.assertEqual([("D", "d")], solutions)

    def test_two_cell_board_with_mismatched_orientation(self):
        config = BoardConfig(2, 2, frozenset({1, 3}))
        solver, solutions = build_solver(
            Board.from_config(config), {"d": (((1, 0),),)}, config, ["d"]
        )
        self.assertEqual(0, solver.solve())
        self.assertEqual([], solutions)

    def test_enumeration_order_is_piece_rotation_position(self):
        config = BoardConfig(2, 2, frozenset())
        solver, solutions = build_solver(Board.from_config(config), DOMINOES, config, ["d", "e"])
        solver.solve()
        self.assertEqual(
            [
                ("D", "d", "E", "e"),
                ("E", "e", "D", "d"),
                ("D", "E", "d", "e"),
                ("E", "D", "e", "d"),
            ],
            solutions,
        )

    def test_no_pieces_reports_the_board_once(self):
        config = BoardConfig(1, 1, frozenset())
        board = Board.from_config(config)
        board.set(0, PEG)
        solver, solutions = build_solver(board, {"m": ((),)}, config, [])
        self.assertEqual(1, solver.solve())
        self.assertEqual([("p",)], solutions)

    def test_leaf_with_empty_cells_is_logged(self):
        config = BoardConfig(2, 1, frozenset())
        solver, solutions = build_solver(Board.from_config(config), {"m": ((),)}, config, ["m"])
        with self.assertLogs("solver.backtracking_solver", level="DEBUG") as logs:
            solver.solve()
        self.assertEqual([("M", "#"), ("#", "M")], solutions)
        self.assertIn("empty cells remain", logs.output[0])

    def test_unknown_piece_rejected(self):
        config = BoardConfig(2, 2, frozenset())
        with self.assertRaises(ValueError):
            build_solver(Board.from_config(config), DOMINOES, config, ["z"])

    def test_replacement_anchors_on_peg(self):
        config = BoardConfig(2, 2, frozenset())
        board = Board.from_snapshot(("p", "p", "w", "#"), width=2)
        solver, solutions = build_solver(board, {"d": DOMINOES["d"]}, config, ["d"], replacements=1)
        solver.solve()
        self.assertEqual([("p", "D", "w", "d")], solutions)

    def test_pegs_are_not_replaced_without_allowance(self):
        config = BoardConfig(2, 2, frozenset())
        board = Board.from_snapshot(("p", "p", "w", "#"), width=2)
        solver, solutions = build_solver(board, {"d": DOMINOES["d"]}, config, ["d"])
        self.assertEqual(0, solver.solve())


class FullBoardSearchTests(unittest.TestCase):
    def test_day_puzzle_regression_fixture(self):
        board = Board.from_snapshot(PEGS_1_2_13_PUZZLE, width=4)
        solver, solutions = build_solver(
            board, SETTINGS.PIECE_OFFSETS, SETTINGS.BOARD, SETTINGS.DAY.pieces
        )
        solver.solve()
        self.assertEqual(PEGS_1_2_13_SOLUTIONS, solutions)

    def test_search_leaves_puzzle_board_untouched(self):
        board = Board.from_snapshot(PEGS_1_2_13_PUZZLE, width=4)
        solver, _ = build_solver(board, SETTINGS.PIECE_OFFSETS, SETTINGS.BOARD, SETTINGS.DAY.pieces)
        solver.solve()
        self.assertEqual(PEGS_1_2_13_PUZZLE, board.snapshot())
        self.assertGreater(solver.stats.placements, 0)
        self.assertEqual(solver.stats.placements, solver.stats.backtracks)

    def test_no_cell_is_claimed_twice(self):
        board = Board.from_snapshot(NIGHT_PUZZLE, width=4)
        catalog = PieceCatalog(SETTINGS.PIECE_OFFSETS, SETTINGS.BOARD)
        engine = RecordingEngine(catalog, self)
        solver, solutions = build_solver(
            board,
            SETTINGS.PIECE_OFFSETS,
            SETTINGS.BOARD,
            SETTINGS.NIGHT.pieces,
            replacements=1,
            engine=engine,
        )
        solver.solve()
        self.assertEqual(0, engine.active_cells)
        self.assertEqual(NIGHT_PUZZLE, board.snapshot())
        self.assertIn(NIGHT_SOLUTION, solutions)

    def test_night_solutions_keep_one_wildcard_and_two_pegs(self):
        board = Board.from_snapshot(NIGHT_PUZZLE, width=4)
        solver, solutions = build_solver(
            board, SETTINGS.PIECE_OFFSETS, SETTINGS.BOARD, SETTINGS.NIGHT.pieces, replacements=1
        )
        solver.solve()
        self.assertTrue(solutions)
        for solution in solutions:
            with self.subTest(solution=solution):
                self.assertEqual(1, solution.count("w"))
                self.assertEqual(2, solution.count("p"))
                self.assertNotIn("#", solution)


if __name__ == "__main__":
    unittest.main()
