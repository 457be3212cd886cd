# sigscope

This is the processing core of a small software oscilloscope. You give it
raw `(channel, value)` readings from any sampling source, and it does the
following with them:

- passes each channel through a 3-sample median filter,
- keeps one reading in every N to reach the requested sampling rate,
- watches the first configured channel for a trigger,
- stores samples from before and after the trigger in one ring buffer per
  channel,
- reports the minimum, maximum, average and estimated frequency of each
  channel.

The package has two modules:

- `sigscope.trigger`
- `sigscope.scope`

## Installation

```
pip install .
```

The package has no runtime dependencies.

## Usage

```python
from sigscope.scope import Sigscoper, SigscoperConfig
from sigscope.trigger import TriggerMode

scope = Sigscoper(buffer_size=1024)

config = SigscoperConfig(
    channels=(6,),
    trigger_mode=TriggerMode.AUTO_RISE,
    trigger_level=2048,
    sampling_rate=10000,
    buffer_size=1024,
)
scope.start(config)

# readings: any iterable of (channel, value) pairs
taken = scope.feed(readings)

if scope.ready:
    samples, position = scope.get_buffer(0, 1024)
    stats = scope.get_stats(0)
    print(stats.min_value, stats.max_value, stats.avg_value, stats.frequency)

scope.stop()
```

### `SigscoperConfig`

A dataclass with these fields:

| Field | Default | Meaning |
| --- | --- | --- |
| `channels` | `()` | The channel numbers to capture. The value is stored as a tuple. |
| `trigger_mode` | `TriggerMode.FREE` | How the trigger fires. |
| `trigger_level` | `2048` | The trigger threshold. |
| `sampling_rate` | `20000` | The requested sampling rate. |
| `auto_speed` | `0.002` | How fast the automatic level follows the signal, clamped to 0.0–1.0. |
| `buffer_size` | `2048` | Samples kept per channel. Values above 2048 are capped at 2048. |

`channel_count` is a read-only property and equals `len(channels)`.

### `Sigscoper`

- `start(config)` begins a new capture. It clears the buffers, the median
  filters and the trigger.
- `feed(readings)` processes readings and returns how many of them it
  consumed.
  - Readings from channels that are not configured are skipped.
  - Consumption stops as soon as the capture completes.
  - If the scope is stopped or not running, `feed` returns `0`.
- `stop()` pauses the scope. If the scope is not running, it logs a warning
  and does nothing else.
- `restart()` arms the trigger for another capture. It keeps the current
  configuration and buffers.
- `get_buffer(index, size)` returns a pair:
  - a list of at most `size` samples, oldest first,
  - the channel's current write position.
- `get_stats(index)` returns a `SigscoperStats` with `min_value`,
  `max_value`, `avg_value` and `frequency`.
  - Zero samples count as empty.
  - If a buffer holds no non-zero samples, `min_value` is `65535` and the
    other fields are `0`.
  - The frequency is estimated from upward crossings of the average, with a
    hysteresis band of one fifth of the signal range.

The scope also has these read-only properties: `running`, `ready`,
`trigger_fired`, `trigger_threshold`, `max_channels`, `buffer_size` and
`config`.

### Errors

`ScopeError` is raised in these cases:

- `start` on a scope that is already running,
- `start` with no channels or with more than 8 channels,
- `start` with a buffer size that is not positive,
- `start` with a sampling rate that is not positive.

`get_buffer` and `get_stats` raise `IndexError` for a channel index that is
not configured. `get_buffer` raises `ValueError` for a size that is not
positive.

### The trigger on its own

You can use `sigscope.trigger.Trigger` without the scope:

1. Call `start(mode, threshold, auto_speed, buffer_size, trigger_position)`.
2. Pass samples to `check_trigger(sample)`.

Each call to `check_trigger` returns a `TriggerState` with two flags:
`buffer_ready` and `continue_work`.

The trigger works in this order:

1. It lets `trigger_position` samples pass, so that the buffer holds history
   from before the trigger.
2. It waits for the trigger condition.
3. It reports the buffer ready once `buffer_size` samples have been counted
   in total.

The hysteresis is 1/40 of the threshold.

The `TriggerMode` values are:

- `FREE`: fires at once.
- `AUTO_RISE` and `AUTO_FALL`: edge triggers whose threshold follows a
  running average of the signal.
- `FIXED_RISE` and `FIXED_FALL`: edge triggers at a fixed level.

`reset()` clears the fired state. `reset_level()` also restarts the
automatic level from the current threshold.

### Helper functions

- `sigscope.scope.decimation_factor(rate)` returns how many readings make up
  one kept sample. For rates below 20000 it is `ceil(20000 / rate)`, and
  otherwise it is 1.
- `sigscope.scope.hardware_sample_rate(rate)` returns the matching rate for
  the converter, which is the factor times `rate`.

## What the package does not do

sigscope does not read from any converter or device, and it runs no
background acquisition thread. Your code must get the readings itself and
pass them to `Sigscoper.feed`. The package has no command-line program and
no display.

## Tests

```
pip install .[test]
pytest
```