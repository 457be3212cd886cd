"""Edge trigger with an optional self-adjusting threshold."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TriggerMode(enum.Enum):
    """How the trigger decides to fire."""

    FREE = enum.auto()
    AUTO_RISE = enum.auto()
    AUTO_FALL = enum.auto()
    FIXED_RISE = enum.auto()
    FIXED_FALL = enum.auto()

    @property
    def follows_signal(self) -> bool:
        """Whether the threshold tracks the running signal level."""
        return self in (TriggerMode.AUTO_RISE, TriggerMode.AUTO_FALL, TriggerMode.FREE)

    @property
    def rising(self) -> bool:
        return self in (TriggerMode.AUTO_RISE, TriggerMode.FIXED_RISE)

    @property
    def falling(self) -> bool:
        return self in (TriggerMode.AUTO_FALL, TriggerMode.FIXED_FALL)


@dataclass(frozen=True)
class TriggerState:
    """Outcome of feeding one sample to the trigger."""

    buffer_ready: bool
    continue_work: bool


_RUNNING = TriggerState(buffer_ready=False, continue_work=True)
_DONE = TriggerState(buffer_ready=True, continue_work=False)


class Trigger:
    """Watches a sample stream and decides when a capture is complete.

    The trigger first lets ``trigger_position`` samples pass so that the
    buffer holds pre-trigger history, then waits for the configured edge,
    and reports the buffer ready once ``buffer_size`` samples have been
    counted in total.
    """

    def __init__(self) -> None:
        self._mode = TriggerMode.FREE
        self._threshold = 2048
        self._hysteresis = 200
        self._armed = False
        self._fired = False
        self._ready_to_trigger = False
        self._samples_after_trigger = 0
        self._buffer_size = 128
        self._trigger_position = 64
        self._prev_sample = 2048
        self._first_sample = True
        self._auto_level = 2048.0
        self._auto_speed = 0.002

    @property
    def mode(self) -> TriggerMode:
        return self._mode

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def hysteresis(self) -> int:
        return self._hysteresis

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def trigger_position(self) -> int:
        return self._trigger_position

    def start(
        self,
        mode: TriggerMode,
        threshold: int,
        auto_speed: float,
        buffer_size: int,
        trigger_position: int,
    ) -> None:
        """Configure the trigger for a new capture."""
        self._mode = mode
        self._threshold = int(threshold)
        self._hysteresis = self._threshold // 40
        self._armed = mode is not TriggerMode.FREE
        self._fired = False
        self._ready_to_trigger = False
        self._samples_after_trigger = 0
        self._prev_sample = self._threshold
        self._first_sample = True
        self._buffer_size = buffer_size
        self._trigger_position = trigger_position
        self._auto_level = float(self._threshold)
        self._auto_speed = auto_speed

    def check_trigger(self, sample: int) -> TriggerState:
        """Feed one sample and report whether capture is finished."""
        if self._first_sample:
            self._first_sample = False
            self._prev_sample = sample
            return _RUNNING

        self._update_auto_level(sample)

        if self._fired:
            self._samples_after_trigger += 1
            if self._samples_after_trigger >= self._buffer_size:
                return _DONE
            return _RUNNING

        if self._samples_after_trigger < self._trigger_position:
            self._samples_after_trigger += 1
            return _RUNNING

        if self._mode.rising:
            condition = self._edge(sample, arm_on_fall=True)
        elif self._mode.falling:
            condition = self._edge(sample, arm_on_fall=False)
        else:
            condition = True

        self._prev_sample = sample
        if condition:
            self._fired = True
        return _RUNNING

    def reset_level(self) -> None:
        """Restart the automatic level from the current threshold, then reset."""
        self._first_sample = True
        self._auto_level = float(self._threshold)
        self.reset()

    def reset(self) -> None:
        """Clear the fired state so a new capture can begin."""
        self._fired = False
        self._armed = self._mode is not TriggerMode.FREE
        self._ready_to_trigger = False
        self._samples_after_trigger = 0
        self._prev_sample = self._threshold

    def _edge(self, sample: int, *, arm_on_fall: bool) -> bool:
        low = self._threshold - self._hysteresis
        high = self._threshold + self._hysteresis
        prev = self._prev_sample
        crossed_low = prev > low and sample <= low
        crossed_high = prev < high and sample >= high
        arm, fire = (crossed_low, crossed_high) if arm_on_fall else (crossed_high, crossed_low)

        if not self._ready_to_trigger and arm:
            self._ready_to_trigger = True
        if self._ready_to_trigger and fire:
            self._ready_to_trigger = False
            return True
        return False

    def _update_auto_level(self, sample: int) -> None:
        speed = max(0.0, min(1.0, self._auto_speed))
        self._auto_level = sample * speed + self._auto_level * (1.0 - speed)
        if self._mode.follows_signal:
            self._threshold = int(self._auto_level)