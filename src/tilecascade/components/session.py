from dataclasses import dataclass


@dataclass(slots=True)
class Session:
    """Per-session counters shared by the engine and its observers."""

    score: int = 0
    moves: int = 0
    combo_count: int = 0
    remaining_time: float = 0.0
    timer_running: bool = False
    timer_warning_sent: bool = False
    processing: bool = False
