from dataclasses import dataclass


@dataclass(slots=True)
class Duration:
    """Total run time of the animation entity it is attached to."""

    value: float  # seconds
