from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple

from config import BoardConfig

Offset = Tuple[int, int]
Shape = FrozenSet[Offset]

RESERVED_IDS = frozenset({"p", "w"})


def _normalize(cells: Iterable[Offset]) -> Shape:
    cells = list(cells)
    min_x = min(x for x, _ in cells)
    min_y = min(y for _, y in cells)
    return frozenset((x - min_x, y - min_y) for x, y in cells)


def normalized_shape(offsets: Iterable[Offset]) -> Shape:
    """Anchor plus offsets, translated so the smallest x and y are zero."""
    return _normalize([(0, 0), *offsets])


def rotate_shape(shape: Iterable[Offset]) -> Shape:
    # Quarter turn clockwise with y growing downwards: (x, y) -> (-y, x)
    return _normalize((-y, x) for x, y in shape)


class PieceCatalog:
    """Rotation and offset lookup for the polyomino pieces.

    The table is validated once on construction; any inconsistency raises
    ``ValueError`` so that a broken configuration never reaches the search.
    """

    def __init__(self, offsets: Mapping[str, Sequence[Sequence[Offset]]], board: BoardConfig) -> None:
        self._offsets: Dict[str, Tuple[Tuple[Offset, ...], ...]] = {
            piece: tuple(tuple((int(dx), int(dy)) for dx, dy in rotation) for rotation in rotations)
            for piece, rotations in offsets.items()
        }
        self._board = board
        self._validate()

    @property
    def pieces(self) -> List[str]:
        return list(self._offsets)

    def __contains__(self, piece: object) -> bool:
        return piece in self._offsets

    def rotation_count(self, piece: str) -> int:
        return len(self._rotations(piece))

    def offsets(self, piece: str, rotation: int) -> Tuple[Offset, ...]:
        rotations = self._rotations(piece)
        if not 0 <= rotation < len(rotations):
            raise ValueError(f"Piece {piece!r} has no rotation {rotation}")
        return rotations[rotation]

    def cell_count(self, piece: str) -> int:
        return len(self._rotations(piece)[0]) + 1

    def _rotations(self, piece: str) -> Tuple[Tuple[Offset, ...], ...]:
        try:
            return self._offsets[piece]
        except KeyError:
            raise ValueError(f"Unknown piece: {piece}") from None

    def _validate(self) -> None:
        for piece, rotations in self._offsets.items():
            if len(piece) != 1 or not piece.isalpha() or not piece.islower():
                raise ValueError(f"Piece id must be a single lowercase letter: {piece!r}")
            if piece in RESERVED_IDS:
                raise ValueError(f"Piece id {piece!r} is reserved for pegs and wildcards")
            if not rotations:
                raise ValueError(f"Piece {piece!r} has no rotations")
            if len({len(rotation) for rotation in rotations}) != 1:
                raise ValueError(f"Rotations of piece {piece!r} cover different cell counts")
            seen: set[Shape] = set()
            for index, rotation in enumerate(rotations):
                if (0, 0) in rotation or len(set(rotation)) != len(rotation):
                    raise ValueError(
                        f"Rotation {index} of piece {piece!r} repeats a cell or points at its anchor"
                    )
                shape = normalized_shape(rotation)
                if shape in seen:
                    raise ValueError(f"Rotation {index} of piece {piece!r} duplicates an earlier orientation")
                seen.add(shape)
                if not self._fits_somewhere(rotation):
                    raise ValueError(f"Rotation {index} of piece {piece!r} does not fit on the board")

    def _fits_somewhere(self, rotation: Sequence[Offset]) -> bool:
        board = self._board
        for pos in range(board.size):
            y, x = divmod(pos, board.width)
            if all(0 <= x + dx < board.width and 0 <= y + dy < board.height for dx, dy in rotation):
                return True
        return False
