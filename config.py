from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Tuple

Offset = Tuple[int, int]
OffsetTable = Dict[str, Tuple[Tuple[Offset, ...], ...]]


@dataclass(frozen=True)
class BoardConfig:
    """Geometry of the playing field.

    Attributes:
        unusable: Row-major positions outside the playing field. They never
            accept a peg, a wildcard or a piece cell.
    """
    width: int
    height: int
    unusable: FrozenSet[int]

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def usable_count(self) -> int:
        return self.size - len(self.unusable)


@dataclass(frozen=True)
class ModeConfig:
    """Values that control how puzzles are generated for a game mode.

    Attributes:
        replacements: Number of polyominoes allowed to anchor on a peg cell,
            replacing that peg. Night mode replaces exactly one peg.
    """
    name: str
    peg_count: int
    wildcard_count: int
    replacements: int
    pieces: Tuple[str, ...]


class Settings:
    #  ##
    # ####
    # ####
    #  ###
    BOARD = BoardConfig(width=4, height=4, unusable=frozenset({0, 3, 12}))

    # Offsets are (dx, dy) from the anchor cell, y growing downwards.
    # Upper case marks the anchor in the sketches.
    PIECE_OFFSETS: OffsetTable = {
        "a": (
            # a
            # Aa
            ((0, -1), (1, 0)),
            # Aa
            # a
            ((0, 1), (1, 0)),
            # aA
            #  a
            ((0, 1), (-1, 0)),
            #  a
            # aA
            ((0, -1), (-1, 0)),
        ),
        "b": (
            # bBb
            ((-1, 0), (1, 0)),
            # b
            # B
            # b
            ((0, -1), (0, 1)),
        ),
        "c": (
            # c
            # c
            # Cc
            ((1, 0), (0, -1), (0, -2)),
            # Ccc
            # c
            ((1, 0), (2, 0), (0, 1)),
            # cC
            #  c
            #  c
            ((-1, 0), (0, 1), (0, 2)),
            #   c
            # ccC
            ((-1, 0), (-2, 0), (0, -1)),
        ),
    }

    DAY = ModeConfig(
        "day",
        peg_count=3,
        wildcard_count=0,
        replacements=0,
        pieces=("a", "b", "c"),
    )
    NIGHT = ModeConfig(
        "night",
        peg_count=3,
        wildcard_count=1,
        replacements=1,
        pieces=("a", "b", "c"),
    )

    # Display attributes only; the solver never reads them.
    PIECE_COLORS = {
        "p": "#fca3c9",
        "w": "#3172ab",
        "a": "#f2ae00",
        "b": "#793b1c",
        "c": "#db0000",
        "#": "#00c2f0",
    }

    LOG_DIR = Path("static")

    @property
    def MODES(self) -> Dict[str, ModeConfig]:
        return {mode.name: mode for mode in (self.DAY, self.NIGHT)}


SETTINGS = Settings()
