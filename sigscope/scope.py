"""Multi-channel signal capture with triggering, median filtering and statistics.

Samples arrive as ``(channel, value)`` readings, the way a continuous ADC
delivers them.  The scope filters each channel, keeps every N-th sample to
reach the requested sampling rate, stores the result in per-channel ring
buffers and lets the trigger decide when a capture is complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from sigscope.trigger import Trigger, TriggerMode

__all__ = [
    "MAX_CHANNELS",
    "SIGNAL_BUFFER_SIZE",
    "MEDIAN_FILTER_WINDOW",
    "SAMPLE_RATE",
    "ScopeError",
    "SigscoperStats",
    "SigscoperConfig",
    "MedianFilter",
    "Sigscoper",
    "decimation_factor",
    "hardware_sample_rate",
]

MAX_CHANNELS = 8
SIGNAL_BUFFER_SIZE = 2048
MEDIAN_FILTER_WINDOW = 3
SAMPLE_RATE = 20000

_UINT16_MAX = 0xFFFF
_MIN_CROSSING_DELTA = 4

log = logging.getLogger(__name__)


class ScopeError(Exception):
    """Raised when the scope is misconfigured or used in the wrong state."""


def decimation_factor(sampling_rate: int) -> int:
    """How many hardware samples make up one kept sample at ``sampling_rate``."""
    if sampling_rate <= 0:
        raise ScopeError(f"sampling rate must be positive, got {sampling_rate}")
    if sampling_rate < SAMPLE_RATE:
        return -(-SAMPLE_RATE // sampling_rate)
    return 1


def hardware_sample_rate(sampling_rate: int) -> int:
    """The rate the converter actually runs at for a requested ``sampling_rate``."""
    return decimation_factor(sampling_rate) * sampling_rate


@dataclass
class SigscoperStats:
    """Summary of one channel's buffer; zero samples count as empty."""

    min_value: int = _UINT16_MAX
    max_value: int = 0
    avg_value: float = 0.0
    frequency: float = 0.0


@dataclass
class SigscoperConfig:
    """What to capture and how to trigger."""

    channels: Tuple[int, ...] = ()
    trigger_mode: TriggerMode = TriggerMode.FREE
    trigger_level: int = 2048
    sampling_rate: int = 20000
    auto_speed: float = 0.002
    buffer_size: int = SIGNAL_BUFFER_SIZE

    def __post_init__(self) -> None:
        self.channels = tuple(self.channels)

    @property
    def channel_count(self) -> int:
        return len(self.channels)


class MedianFilter:
    """Sliding median over a small window; passes samples through until full."""

    def __init__(self, window: int = MEDIAN_FILTER_WINDOW) -> None:
        if window < 1:
            raise ValueError(f"window must be at least 1, got {window}")
        self._window = window
        self.reset()

    def reset(self) -> None:
        self._values = [0] * self._window
        self._index = 0
        self._initialized = False

    def apply(self, sample: int) -> int:
        """Add ``sample`` and return the filtered value."""
        self._values[self._index] = sample
        self._index = (self._index + 1) % self._window
        if not self._initialized and self._index == 0:
            self._initialized = True
        if not self._initialized:
            return sample
        return sorted(self._values)[self._window // 2]


class Sigscoper:
    """A software oscilloscope fed with converter readings."""

    def __init__(self, buffer_size: int = SIGNAL_BUFFER_SIZE) -> None:
        self._config = SigscoperConfig()
        self._buffer_size = min(buffer_size, SIGNAL_BUFFER_SIZE)
        self._running = False
        self._stop_requested = False
        self._ready = False
        self._decimation = 1
        self._sample_counter = 0
        self._trigger = Trigger()
        self._clear_buffers()
        self._filters = [MedianFilter() for _ in range(MAX_CHANNELS)]

    # -- state ---------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ready(self) -> bool:
        """Whether a complete capture is available."""
        return self._ready

    @property
    def trigger_fired(self) -> bool:
        return self._trigger.fired

    @property
    def trigger_threshold(self) -> int:
        return self._trigger.threshold

    @property
    def max_channels(self) -> int:
        return MAX_CHANNELS

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def config(self) -> SigscoperConfig:
        return self._config

    # -- control -------------------------------------------------------------

    def start(self, config: SigscoperConfig) -> None:
        """Begin a new capture with ``config``."""
        if self._running:
            raise ScopeError("scope is already running")
        if not 0 < config.channel_count <= MAX_CHANNELS:
            raise ScopeError(
                f"channel count must be between 1 and {MAX_CHANNELS}, got {config.channel_count}"
            )
        buffer_size = min(config.buffer_size, SIGNAL_BUFFER_SIZE)
        if buffer_size < 1:
            raise ScopeError(f"buffer size must be positive, got {config.buffer_size}")
        decimation = decimation_factor(config.sampling_rate)

        self._config = config
        self._buffer_size = buffer_size
        self._trigger.start(
            config.trigger_mode,
            config.trigger_level,
            config.auto_speed,
            buffer_size,
            buffer_size // 2,
        )
        self._clear_buffers()
        self._trigger.reset_level()
        self._ready = False
        self._decimation = decimation
        self._sample_counter = 0
        for median in self._filters:
            median.reset()
        self._running = True
        self._stop_requested = False
        self._trigger.reset()

    def restart(self) -> None:
        """Start another capture with the current configuration and buffers."""
        self._running = True
        self._stop_requested = False
        self._ready = False
        self._trigger.reset()
        self._trigger.reset()

    def stop(self) -> None:
        """Pause capturing; a later start() may reconfigure."""
        if not self._running:
            log.warning("stop: scope is not running")
            return
        self._stop_requested = True
        self._running = False
        log.info("scope paused, waiting for next start")

    # -- data ----------------------------------------------------------------

    def feed(self, readings: Iterable[Tuple[int, int]]) -> int:
        """Process ``(channel, value)`` readings; return how many were taken.

        Readings stop being taken once the capture completes or the scope is
        stopped.  Readings from channels not in the configuration are skipped.
        """
        if self._stop_requested or not self._running:
            return 0
        channels = self._config.channels
        last = len(channels) - 1
        taken = 0
        for channel, value in readings:
            taken += 1
            try:
                index = channels.index(channel)
            except ValueError:
                continue
            filtered = self._filters[index].apply(value)
            if index == 0:
                self._sample_counter += 1
            if self._sample_counter < self._decimation:
                continue
            if index == 0:
                state = self._trigger.check_trigger(filtered)
                if state.buffer_ready:
                    self._ready = True
                if not state.continue_work:
                    self._stop_requested = True
                    break
            self._store(index, filtered)
            if index == last:
                self._sample_counter = 0
        return taken

    def get_buffer(self, index: int, size: int) -> tuple[list[int], int]:
        """Return up to ``size`` samples, oldest first, and the write position."""
        self._check_index(index)
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        position = self._positions[index]
        samples = self._ordered(index)[: min(size, self._buffer_size)]
        return samples, position

    def get_stats(self, index: int) -> SigscoperStats:
        """Compute min, max, mean and frequency of a channel's buffer."""
        self._check_index(index)
        valid = [s for s in self._ordered(index) if s > 0]
        stats = SigscoperStats()
        if valid:
            stats.min_value = min(valid)
            stats.max_value = max(valid)
            stats.avg_value = sum(valid) / len(valid)
        stats.frequency = self._frequency(index)
        return stats

    # -- internals -----------------------------------------------------------

    def _clear_buffers(self) -> None:
        self._buffers = [[0] * SIGNAL_BUFFER_SIZE for _ in range(MAX_CHANNELS)]
        self._positions = [0] * MAX_CHANNELS

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._config.channel_count:
            raise IndexError(f"channel index {index} out of range")

    def _store(self, index: int, sample: int) -> None:
        position = self._positions[index]
        self._buffers[index][position] = sample
        self._positions[index] = (position + 1) % self._buffer_size

    def _ordered(self, index: int) -> list[int]:
        ring = self._buffers[index][: self._buffer_size]
        start = self._positions[index]
        return ring[start:] + ring[:start]

    def _frequency(self, index: int) -> float:
        if self._buffer_size < 2:
            return 0.0
        samples = self._ordered(index)
        valid = [s for s in samples if s > 0]
        if not valid:
            return 0.0

        average = sum(valid) / len(valid)
        low, high = min(valid), max(valid)
        hysteresis = (high - low if high > low else 0) // 5
        upper = average + hysteresis / 2.0
        lower = average - hysteresis / 2.0

        high_state = False
        crossings = 0
        total_delta = 0
        last_crossing = 0
        for position, sample in enumerate(samples):
            if sample <= 0:
                continue
            if not high_state and sample > upper:
                high_state = True
                if crossings > 0:
                    delta = position - last_crossing
                    if delta >= _MIN_CROSSING_DELTA:
                        total_delta += delta
                last_crossing = position
                crossings += 1
            elif high_state and sample < lower:
                high_state = False

        if crossings > 1 and total_delta > 0:
            average_delta = total_delta / (crossings - 1)
            return float(self._config.sampling_rate) / average_delta
        return 0.0