from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Sequence

from config import SETTINGS, BoardConfig, ModeConfig
from .backtracking_solver import BacktrackingSolver
from .catalog import Offset, PieceCatalog
from .models import EMPTY, PEG, WILDCARD, Board, CellState, Snapshot, SolverStats
from .placement import PlacementEngine

logger = logging.getLogger(__name__)

Reporter = Callable[[Dict[str, object]], None]


@dataclass
class ReportingContext:
    """Counters for one run, threaded through the enumeration.

    ``puzzle_index`` counts puzzles that produced at least one solution;
    ``solution_index`` restarts for every puzzle. ``stats`` holds the counters
    of this run alone.
    """
    mode: str
    puzzle_index: int = 0
    solution_index: int = 0
    puzzle_board: Optional[Snapshot] = None
    stats: SolverStats = field(default_factory=SolverStats)

    def start_puzzle(self, board: Board) -> None:
        self.solution_index = 0
        self.puzzle_board = board.snapshot()


class TilingOrchestrator:
    def __init__(
        self,
        board_config: Optional[BoardConfig] = None,
        offsets: Optional[Mapping[str, Sequence[Sequence[Offset]]]] = None,
        modes: Optional[Sequence[ModeConfig]] = None,
    ) -> None:
        self.board_config = board_config or SETTINGS.BOARD
        self.catalog = PieceCatalog(
            offsets if offsets is not None else SETTINGS.PIECE_OFFSETS,
            self.board_config,
        )
        self.engine = PlacementEngine(self.catalog)
        mode_list = modes if modes is not None else (SETTINGS.DAY, SETTINGS.NIGHT)
        self.modes: Dict[str, ModeConfig] = {mode.name: mode for mode in mode_list}
        for mode in self.modes.values():
            self._validate_mode(mode)
        self.stats = SolverStats()

    def run_day_mode(self, reporter: Optional[Reporter] = None) -> None:
        self.run(SETTINGS.DAY.name, reporter)

    def run_night_mode(self, reporter: Optional[Reporter] = None) -> None:
        self.run(SETTINGS.NIGHT.name, reporter)

    def run(self, mode_name: str, reporter: Optional[Reporter] = None) -> None:
        mode = self.modes.get(mode_name)
        if mode is None:
            raise ValueError(f"Unknown mode: {mode_name}")

        def emit(event_type: str, **payload: object) -> None:
            if reporter:
                event: Dict[str, object] = {"type": event_type, "mode": mode.name}
                event.update(payload)
                reporter(event)

        context = ReportingContext(mode.name)
        stats = context.stats
        board = Board.from_config(self.board_config)
        logger.info("Starting %s mode with pieces %s", mode.name, ", ".join(mode.pieces))
        emit("run_started", pieces=list(mode.pieces))
        start = time.time()

        def on_solution(solved: Board) -> None:
            if context.solution_index == 0:
                context.puzzle_index += 1
                stats.puzzles_solved += 1
                emit("puzzle", puzzle_index=context.puzzle_index, board=context.puzzle_board)
            context.solution_index += 1
            emit(
                "solution",
                puzzle_index=context.puzzle_index,
                solution_index=context.solution_index,
                board=solved.snapshot(),
            )

        def solve_puzzle() -> None:
            stats.puzzles_attempted += 1
            context.start_puzzle(board)
            solver = BacktrackingSolver(
                board,
                self.engine,
                mode.pieces,
                on_solution,
                replacements=mode.replacements,
                stats=stats,
            )
            solver.solve()

        def place_wildcards(first: int, remaining: int) -> None:
            if remaining == 0:
                solve_puzzle()
                return
            self._mark_each(board, first, WILDCARD, lambda pos: place_wildcards(pos + 1, remaining - 1))

        def place_pegs(first: int, remaining: int) -> None:
            if remaining == 0:
                place_wildcards(first, mode.wildcard_count)
                return
            self._mark_each(board, first, PEG, lambda pos: place_pegs(pos + 1, remaining - 1))

        place_pegs(0, mode.peg_count)

        stats.elapsed = time.time() - start
        logger.info(
            "Finished %s mode: %d puzzle(s), %d solution(s) from %d peg layouts in %.2fs",
            mode.name,
            context.puzzle_index,
            stats.solutions,
            stats.puzzles_attempted,
            stats.elapsed,
        )
        emit(
            "run_finished",
            puzzles=context.puzzle_index,
            solutions=stats.solutions,
            puzzles_attempted=stats.puzzles_attempted,
            elapsed=stats.elapsed,
        )
        self.stats = stats

    @staticmethod
    def _mark_each(board: Board, first: int, state: CellState, descend: Callable[[int], None]) -> None:
        for pos in range(first, len(board)):
            if board.get(pos) != EMPTY:
                continue
            board.set(pos, state)
            descend(pos)
            board.set(pos, EMPTY)

    def _validate_mode(self, mode: ModeConfig) -> None:
        if mode.peg_count < 0 or mode.wildcard_count < 0:
            raise ValueError(f"Mode {mode.name!r} needs non-negative peg and wildcard counts")
        if not 0 <= mode.replacements <= mode.peg_count:
            raise ValueError(f"Mode {mode.name!r} cannot replace more pegs than it places")
        for piece in mode.pieces:
            if piece not in self.catalog:
                raise ValueError(f"Mode {mode.name!r} uses unknown piece: {piece}")
        piece_cells = sum(self.catalog.cell_count(piece) for piece in mode.pieces)
        free_cells = (
            self.board_config.usable_count
            - mode.peg_count
            - mode.wildcard_count
            + mode.replacements
        )
        if piece_cells != free_cells:
            raise ValueError(
                f"Mode {mode.name!r} pieces cover {piece_cells} cells but {free_cells} must be filled"
            )
