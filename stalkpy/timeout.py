from dataclasses import dataclass

_MICROS_PER_SECOND = 1_000_000


@dataclass(frozen=True)
class Timeout:
    """How long a blocking read or write may wait on the stream.

    Split into whole seconds and a sub-second microsecond part. A zero
    timeout disables the limit instead of switching to non-blocking mode.
    """
    seconds: int = 0
    microseconds: int = 0

    def __post_init__(self) -> None:
        if self.seconds < 0 or self.microseconds < 0:
            raise ValueError("Timeout components cannot be negative.")
        if self.microseconds >= _MICROS_PER_SECOND:
            raise ValueError("Timeout microseconds must be below one second.")

    @classmethod
    def from_seconds(cls, value: float) -> "Timeout":
        if value < 0:
            raise ValueError("Timeout components cannot be negative.")
        total_micros = round(value * _MICROS_PER_SECOND)
        return cls(*divmod(total_micros, _MICROS_PER_SECOND))

    @property
    def total_seconds(self) -> float:
        return self.seconds + self.microseconds / _MICROS_PER_SECOND

    @property
    def is_unbounded(self) -> bool:
        return self.seconds == 0 and self.microseconds == 0


DEFAULT_TIMEOUT = Timeout(10)
