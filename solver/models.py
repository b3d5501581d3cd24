from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from config import BoardConfig

Snapshot = Tuple[str, ...]


class CellKind(Enum):
    UNUSABLE = "unusable"
    EMPTY = "empty"
    PEG = "peg"
    WILDCARD = "wildcard"
    OCCUPIED = "occupied"


_FIXED_TAGS = {
    CellKind.UNUSABLE: "",
    CellKind.EMPTY: "#",
    CellKind.PEG: "p",
    CellKind.WILDCARD: "w",
}


@dataclass(frozen=True)
class CellState:
    kind: CellKind
    piece: Optional[str] = None
    anchor: bool = False

    @classmethod
    def occupied(cls, piece: str, anchor: bool = False) -> "CellState":
        return cls(CellKind.OCCUPIED, piece, anchor)

    @classmethod
    def from_tag(cls, tag: str) -> "CellState":
        for kind, fixed in _FIXED_TAGS.items():
            if tag == fixed:
                return cls(kind)
        if len(tag) != 1 or not tag.isalpha():
            raise ValueError(f"Unknown cell tag: {tag!r}")
        return cls.occupied(tag.lower(), anchor=tag.isupper())

    @property
    def tag(self) -> str:
        if self.kind is CellKind.OCCUPIED:
            if self.piece is None:
                raise ValueError("Occupied cell has no piece")
            return self.piece.upper() if self.anchor else self.piece.lower()
        return _FIXED_TAGS[self.kind]


UNUSABLE = CellState(CellKind.UNUSABLE)
EMPTY = CellState(CellKind.EMPTY)
PEG = CellState(CellKind.PEG)
WILDCARD = CellState(CellKind.WILDCARD)


class Board:
    """Row-major grid of cell states, mutated in place by the search."""

    def __init__(self, width: int, height: int, cells: Sequence[CellState]) -> None:
        if len(cells) != width * height:
            raise ValueError("Cell count does not match board dimensions")
        self.width = width
        self.height = height
        self.cells: List[CellState] = list(cells)

    @classmethod
    def from_config(cls, config: BoardConfig) -> "Board":
        cells = [UNUSABLE if pos in config.unusable else EMPTY for pos in range(config.size)]
        return cls(config.width, config.height, cells)

    @classmethod
    def from_snapshot(cls, tags: Iterable[str], width: int) -> "Board":
        cells = [CellState.from_tag(tag) for tag in tags]
        if width <= 0 or len(cells) % width:
            raise ValueError("Snapshot length must be a multiple of the board width")
        return cls(width, len(cells) // width, cells)

    def __len__(self) -> int:
        return len(self.cells)

    def positions(self) -> Iterator[int]:
        return iter(range(len(self.cells)))

    def get(self, pos: int) -> CellState:
        return self.cells[pos]

    def set(self, pos: int, state: CellState) -> None:
        self.cells[pos] = state

    def is_usable(self, pos: int) -> bool:
        return self.cells[pos].kind is not CellKind.UNUSABLE

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def to_coordinates(self, pos: int) -> Tuple[int, int]:
        if not 0 <= pos < len(self.cells):
            raise ValueError(f"Position {pos} is outside the board")
        y, x = divmod(pos, self.width)
        return x, y

    def to_position(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise ValueError(f"Coordinates ({x}, {y}) are outside the board")
        return y * self.width + x

    def is_complete(self) -> bool:
        return EMPTY not in self.cells

    def snapshot(self) -> Snapshot:
        return tuple(cell.tag for cell in self.cells)


@dataclass
class SolverStats:
    puzzles_attempted: int = 0
    puzzles_solved: int = 0
    solutions: int = 0
    placements: int = 0
    backtracks: int = 0
    elapsed: float = 0.0
