from __future__ import annotations

import json
import logging
import queue
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, cast

from flask import (
    Flask,
    Response,
    abort,
    jsonify,
    request,
    send_from_directory,
    stream_with_context,
)

from config import SETTINGS, BoardConfig
from solver.orchestrator import TilingOrchestrator

app = Flask(__name__)

orchestrator = TilingOrchestrator()


def board_rows(board: Sequence[str], width: int) -> List[str]:
    """Text grid for a board snapshot; unusable cells print as blanks."""
    cells = [tag or " " for tag in board]
    return ["".join(cells[start:start + width]) for start in range(0, len(cells), width)]


class SolutionCollector:
    """Reporter that groups solutions under the puzzle they belong to."""

    def __init__(self) -> None:
        self.puzzles: List[Dict[str, object]] = []
        self.summary: Dict[str, object] = {}

    def __call__(self, event: Dict[str, object]) -> None:
        event_type = event.get("type")
        if event_type == "puzzle":
            self.puzzles.append(
                {
                    "puzzle_index": event["puzzle_index"],
                    "board": list(event["board"]),
                    "solutions": [],
                }
            )
        elif event_type == "solution":
            solutions = cast(List[Dict[str, object]], self.puzzles[-1]["solutions"])
            solutions.append(
                {
                    "solution_index": event["solution_index"],
                    "board": list(event["board"]),
                }
            )
        elif event_type == "run_finished":
            self.summary = {key: value for key, value in event.items() if key != "type"}

    def as_dict(self) -> Dict[str, object]:
        return {"puzzles": self.puzzles, "summary": self.summary}


class RunLogWriter:
    def __init__(self, path: Path, mode: Optional[str] = None, board: Optional[BoardConfig] = None):
        self.path = path
        self.board = board or SETTINGS.BOARD
        self.width = self.board.width
        self._lock = threading.Lock()
        self._summary_written = False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        header = self._build_header(mode)
        with self._lock:
            with self.path.open("w", encoding="utf-8") as fh:
                for line in header:
                    fh.write(f"{line}\n")

    def _build_header(self, mode: Optional[str]) -> List[str]:
        timestamp = datetime.now().astimezone().isoformat(timespec="seconds")
        board = self.board
        header: List[str] = [
            "PEG TILING RUN LOG",
            f"Generated at: {timestamp}",
            f"Mode: {mode or 'none selected'}",
            f"Board: {board.width}x{board.height} ({board.usable_count} usable cells)",
        ]
        mode_config = SETTINGS.MODES.get(mode or "")
        if mode_config is not None:
            header.append(
                "Pieces: {pegs} peg(s), {wildcards} wildcard(s), {pieces}".format(
                    pegs=mode_config.peg_count,
                    wildcards=mode_config.wildcard_count,
                    pieces=", ".join(mode_config.pieces),
                )
            )
        header.extend(["", "Events:"])
        return header

    def handle_event(self, event: Dict[str, object]) -> None:
        event_type = event.get("type")
        lines: List[str] = []
        if event_type == "run_started":
            lines.append(f"Run started ({event.get('mode')} mode).")
        elif event_type == "puzzle":
            lines.append(f"puzzle {event.get('puzzle_index')}:")
            lines.extend(board_rows(event.get("board") or (), self.width))
        elif event_type == "solution":
            lines.append(
                f"puzzle {event.get('puzzle_index')} - solution {event.get('solution_index')}:"
            )
            lines.extend(board_rows(event.get("board") or (), self.width))
        elif event_type == "run_finished":
            elapsed = event.get("elapsed")
            elapsed_text = f"{elapsed:.2f}s" if isinstance(elapsed, (int, float)) else "unknown"
            lines.append(f"Run finished in {elapsed_text}.")
        elif event_type == "error":
            message = event.get("message")
            if message:
                lines.append(f"Error: {message}")

        if lines:
            self._append_lines(lines)

    def log_error(self, message: str) -> None:
        self._append_lines([f"Error: {message}"])

    def append_summary(self, summary: Dict[str, object], error: Optional[str] = None) -> None:
        if self._summary_written:
            return
        lines: List[str] = ["", "Summary:"]
        puzzles = summary.get("puzzles")
        solutions = summary.get("solutions")
        attempted = summary.get("puzzles_attempted")
        if isinstance(attempted, int):
            lines.append(f"  Peg layouts searched: {attempted:,}")
        if isinstance(puzzles, int):
            lines.append(f"  Puzzles with solutions: {puzzles:,}")
        if isinstance(solutions, int):
            lines.append(f"  Total solutions: {solutions:,}")
        if error:
            lines.append(f"Run ended with error: {error}")
        elif solutions:
            lines.append("Run ended with solutions.")
        else:
            lines.append("Run completed without a solution.")
        self._append_lines(lines)
        self._summary_written = True

    def _append_lines(self, lines: List[str]) -> None:
        if not lines:
            return
        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                for line in lines:
                    fh.write(f"{line}\n")


@dataclass
class RunState:
    queue: "queue.Queue[Dict[str, object]]"
    mode: str
    collector: SolutionCollector = field(default_factory=SolutionCollector)
    error: Optional[str] = None
    done: bool = False
    thread: Optional[threading.Thread] = None
    log_path: Optional[Path] = None
    log_writer: Optional[RunLogWriter] = None


class RunManager:
    def __init__(self) -> None:
        self._runs: Dict[str, RunState] = {}
        self._lock = threading.Lock()

    def start_run(self, mode: str) -> str:
        run_id = uuid.uuid4().hex
        log_path = SETTINGS.LOG_DIR / f"run_log_{mode}.txt"
        log_writer = RunLogWriter(log_path, mode, orchestrator.board_config)
        state = RunState(
            queue.Queue(),
            mode=mode,
            log_path=log_path,
            log_writer=log_writer,
        )
        with self._lock:
            self._runs[run_id] = state
        thread = threading.Thread(
            target=self._worker,
            args=(run_id,),
            daemon=True,
        )
        state.thread = thread
        thread.start()
        return run_id

    def get_state(self, run_id: str) -> Optional[RunState]:
        with self._lock:
            return self._runs.get(run_id)

    def _worker(self, run_id: str) -> None:
        state = self.get_state(run_id)
        if state is None:
            return

        log_writer = state.log_writer

        def progress(event: Dict[str, object]) -> None:
            event.setdefault("run_id", run_id)
            state.collector(event)
            state.queue.put(event)
            if log_writer:
                log_writer.handle_event(event)

        try:
            orchestrator.run(state.mode, progress)
        except ValueError as exc:
            state.error = str(exc)
            if log_writer:
                log_writer.log_error(state.error)
            state.queue.put({"type": "error", "message": state.error, "run_id": run_id})
        finally:
            if log_writer:
                log_writer.append_summary(state.collector.summary, state.error)
            state.done = True
            state.queue.put(
                {
                    "type": "finished",
                    "success": state.error is None,
                    "error": state.error,
                    "run_id": run_id,
                }
            )


run_manager = RunManager()


@app.route("/")
def index():
    board = SETTINGS.BOARD
    return jsonify(
        {
            "board": {
                "width": board.width,
                "height": board.height,
                "unusable": sorted(board.unusable),
            },
            "modes": {
                name: {
                    "pegs": mode.peg_count,
                    "wildcards": mode.wildcard_count,
                    "pieces": list(mode.pieces),
                }
                for name, mode in SETTINGS.MODES.items()
            },
            "colors": SETTINGS.PIECE_COLORS,
        }
    )


@app.route("/solve", methods=["POST"])
def solve_mode():
    mode = _parse_mode(request)
    log_writer = RunLogWriter(
        SETTINGS.LOG_DIR / f"run_log_{mode}.txt", mode, orchestrator.board_config
    )
    collector = SolutionCollector()

    def progress(event: Dict[str, object]) -> None:
        collector(event)
        log_writer.handle_event(event)

    try:
        orchestrator.run(mode, progress)
    except ValueError as exc:
        message = str(exc)
        log_writer.log_error(message)
        log_writer.append_summary({}, message)
        return jsonify({"error": message, "run_log": log_writer.path.name}), 400
    log_writer.append_summary(collector.summary)
    payload = collector.as_dict()
    payload["mode"] = mode
    payload["run_log"] = log_writer.path.name
    return jsonify(payload)


@app.route("/runs", methods=["POST"])
def start_run():
    mode = _parse_mode(request)
    run_id = run_manager.start_run(mode)
    return jsonify({"run_id": run_id}), 202


@app.route("/runs/<run_id>/stream")
def stream_run(run_id: str):
    state = run_manager.get_state(run_id)
    if state is None:
        abort(404)

    def event_stream():
        while True:
            if state.done and state.queue.empty():
                break
            try:
                event = state.queue.get(timeout=1)
            except queue.Empty:
                continue
            yield f"data: {json.dumps(event)}\n\n"
        yield "event: end\ndata: {}\n\n"

    return Response(stream_with_context(event_stream()), mimetype="text/event-stream")


@app.route("/runs/<run_id>/result")
def run_result(run_id: str):
    state = run_manager.get_state(run_id)
    if state is None:
        abort(404)
    if not state.done:
        return "", 202
    log_name = state.log_path.name if state.log_path else None
    if state.error:
        return jsonify({"error": state.error, "run_log": log_name}), 400
    payload = state.collector.as_dict()
    payload["mode"] = state.mode
    payload["run_log"] = log_name
    return jsonify(payload)


@app.route("/logs/<path:filename>")
def serve_log(filename: str):
    return send_from_directory(SETTINGS.LOG_DIR.resolve(), filename, as_attachment=True)


def _parse_mode(req) -> str:
    data = req.get_json(silent=True) or req.form
    mode = str(data.get("mode") or "").strip().lower()
    if mode not in SETTINGS.MODES:
        abort(400, description=f"Unknown mode: {mode or 'none'}")
    return mode


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    app.run(debug=True)
