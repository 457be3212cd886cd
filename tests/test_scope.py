import pytest

from sigscope.scope import (
    MAX_CHANNELS,
    SAMPLE_RATE,
    SIGNAL_BUFFER_SIZE,
    MedianFilter,
    ScopeError,
    Sigscoper,
    SigscoperConfig,
    SigscoperStats,
    decimation_factor,
    hardware_sample_rate,
)
from sigscope.trigger import TriggerMode

CHANNEL = 3


def constant(value, count, channel=CHANNEL):
    return [(channel, value)] * count


def square_wave(period, cycles, low=1000, high=3000, channel=CHANNEL):
    half = period // 2
    readings = []
    for _ in range(cycles):
        readings.extend([(channel, low)] * half)
        readings.extend([(channel, high)] * half)
    return readings


def started(buffer_size=8, **kwargs):
    scope = Sigscoper()
    kwargs.setdefault("channels", (CHANNEL,))
    scope.start(SigscoperConfig(buffer_size=buffer_size, **kwargs))
    return scope


def test_decimation_above_base_rate_is_one():
    assert decimation_factor(25000) == 1
    assert hardware_sample_rate(25000) == 25000


@pytest.mark.parametrize("rate", [1, 1000, 7000, 10000, 19999])
def test_hardware_rate_covers_base_rate(rate):
    factor = decimation_factor(rate)
    assert hardware_sample_rate(rate) == factor * rate
    assert hardware_sample_rate(rate) >= SAMPLE_RATE
    assert (factor - 1) * rate < SAMPLE_RATE


def test_decimation_rejects_non_positive_rate():
    with pytest.raises(ScopeError):
        decimation_factor(0)


def test_median_filter_passes_through_until_full():
    median = MedianFilter(3)
    assert median.apply(5) == 5
    assert median.apply(1) == 1
    assert median.apply(3) == 3
    assert median.apply(10) == 3


def test_median_filter_removes_spike():
    median = MedianFilter(3)
    outputs = [median.apply(v) for v in [100, 100, 100, 4000, 100, 100]]
    assert outputs[3:] == [100, 100, 100]


def test_median_filter_reset_passes_through_again():
    median = MedianFilter(3)
    for v in (7, 7, 7):
        median.apply(v)
    median.reset()
    assert median.apply(900) == 900


def test_median_filter_rejects_empty_window():
    with pytest.raises(ValueError):
        MedianFilter(0)


def test_constructor_clamps_buffer_size():
    assert Sigscoper(SIGNAL_BUFFER_SIZE * 4).buffer_size == SIGNAL_BUFFER_SIZE
    assert Sigscoper(16).buffer_size == 16


def test_start_rejects_bad_channel_counts():
    scope = Sigscoper()
    with pytest.raises(ScopeError):
        scope.start(SigscoperConfig(channels=()))
    with pytest.raises(ScopeError):
        scope.start(SigscoperConfig(channels=tuple(range(MAX_CHANNELS + 1))))
    assert not scope.running


def test_start_twice_raises():
    scope = started()
    with pytest.raises(ScopeError):
        scope.start(SigscoperConfig(channels=(CHANNEL,)))


def test_stop_then_start_again():
    scope = started()
    scope.stop()
    assert not scope.running
    scope.stop()
    assert not scope.running
    scope.start(SigscoperConfig(channels=(CHANNEL,), buffer_size=4))
    assert scope.running
    assert scope.buffer_size == 4


def test_free_capture_becomes_ready():
    scope = started(buffer_size=8)
    assert not scope.ready
    taken = scope.feed(constant(100, 100))
    assert scope.ready
    assert scope.trigger_fired
    assert taken < 100
    assert scope.feed(constant(100, 10)) == 0


def test_buffer_holds_constant_signal():
    scope = started(buffer_size=8)
    scope.feed(constant(100, 100))
    samples, position = scope.get_buffer(0, 100)
    assert samples == [100] * 8
    assert 0 <= position < 8


def test_get_buffer_truncates_to_requested_size():
    scope = started(buffer_size=8)
    scope.feed(constant(250, 100))
    samples, _ = scope.get_buffer(0, 3)
    assert samples == [250, 250, 250]


def test_get_buffer_errors():
    scope = started()
    with pytest.raises(IndexError):
        scope.get_buffer(1, 4)
    with pytest.raises(ValueError):
        scope.get_buffer(0, 0)


def test_stats_of_empty_buffer_are_defaults():
    scope = started()
    assert scope.get_stats(0) == SigscoperStats()


def test_stats_before_start_raise():
    with pytest.raises(IndexError):
        Sigscoper().get_stats(0)


def test_stats_of_constant_signal():
    scope = started(buffer_size=8)
    scope.feed(constant(100, 100))
    stats = scope.get_stats(0)
    assert stats.min_value == stats.max_value == 100
    assert stats.avg_value == pytest.approx(100)
    assert stats.frequency == 0.0


def test_square_wave_frequency():
    period = 20
    scope = started(buffer_size=SIGNAL_BUFFER_SIZE, sampling_rate=SAMPLE_RATE)
    scope.feed(square_wave(period, 300))
    assert scope.ready
    stats = scope.get_stats(0)
    assert stats.min_value == 1000
    assert stats.max_value == 3000
    assert stats.min_value < stats.avg_value < stats.max_value
    assert stats.frequency == pytest.approx(SAMPLE_RATE / period)


def test_unknown_channels_are_ignored():
    scope = started(buffer_size=8)
    scope.feed(constant(500, 50, channel=CHANNEL + 1))
    assert not scope.ready
    assert scope.get_stats(0) == SigscoperStats()


def test_two_channels_fill_separate_buffers():
    scope = started(buffer_size=8, channels=(3, 5))
    readings = [reading for _ in range(100) for reading in ((3, 100), (5, 900))]
    scope.feed(readings)
    assert scope.ready
    first, _ = scope.get_buffer(0, 8)
    second, _ = scope.get_buffer(1, 8)
    assert set(first) == {100}
    assert set(second) <= {0, 900}
    assert 900 in second


def test_decimation_keeps_every_other_sample():
    scope = started(
        buffer_size=8,
        sampling_rate=SAMPLE_RATE // 2,
        trigger_mode=TriggerMode.FIXED_RISE,
        trigger_level=4000,
    )
    taken = scope.feed(constant(100, 10))
    assert taken == 10
    assert not scope.ready
    _, position = scope.get_buffer(0, 8)
    assert position == 5


def test_restart_allows_new_capture():
    scope = started(buffer_size=8)
    scope.feed(constant(100, 100))
    assert scope.ready
    scope.restart()
    assert scope.running
    assert not scope.ready
    assert scope.feed(constant(200, 100)) > 0
    assert scope.ready
    samples, _ = scope.get_buffer(0, 8)
    assert 200 in samples


def test_trigger_threshold_follows_signal_in_free_mode():
    scope = started(buffer_size=64, trigger_level=2048, auto_speed=1.0)
    scope.feed(constant(1500, 10))
    assert scope.trigger_threshold == 1500
    assert scope.max_channels == MAX_CHANNELS