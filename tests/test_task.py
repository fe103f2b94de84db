"""
test_task.py - stats task construction, sampling loop and shutdown
"""
import io

import pytest

from pktstats.clock import SystemClock
from pktstats.config import StatsTaskConfig
from pktstats.errors import InvalidDeviceError, UnknownFormatError
from pktstats.task import StatsTask, start_stats_task

from conftest import FakeDevice


def stop_after(passes, traffic=None):
    """on_idle hook: add traffic every pass and stop the clock after `passes` passes."""
    def on_idle(clock):
        if traffic is not None:
            traffic()
        if len(clock.idle_sleeps) >= passes:
            clock.running = False
    return on_idle


def test_counter_order_and_directions(clock):
    a, b, c = FakeDevice("a"), FakeDevice("b"), FakeDevice("c")

    task = StatsTask(devices=[a], rx_devices=[b], tx_devices=[c], format="nil", clock=clock)

    assert [(ctr.name, ctr.direction) for ctr in task.counters] == [
        ("b", "rx"), ("a", "rx"), ("c", "tx"), ("a", "tx"),
    ]
    assert all(ctr.clock is clock for ctr in task.counters)


def test_run_samples_then_finalizes_in_order(clock, recorder):
    dev = FakeDevice("eth0")
    clock.on_idle = stop_after(7, traffic=lambda: dev.add_traffic(500_000, 32_000_000))
    task = StatsTask(devices=[dev], format="recording", clock=clock, interval_ms=500)

    task.run()

    assert clock.idle_sleeps == [500] * 7
    # passes at 0.0 (baseline), 1.5 and 3.0 take samples
    rx, tx = task.counters
    assert len(rx.mpps) == 3  # two loop samples plus the final one
    assert rx.mpps[0] == pytest.approx(3 * 500_000 / 1.5 / 1e6)
    assert rx.finalized and tx.finalized
    # drain delays, rx first
    assert clock.sleeps == [100, 50]
    finals = recorder.of("final")
    assert [(ev[0], ev[2]) for ev in finals] == [("rx", "eth0"), ("tx", "eth0")]
    assert [ev[1] for ev in recorder.events].count("init") == 2


def test_run_with_clock_already_stopped(clock, device):
    clock.running = False
    out = io.StringIO()
    task = StatsTask(devices=[device], format="plain", file=out, clock=clock)

    task.run()

    assert clock.idle_sleeps == []
    text = out.getvalue()
    assert "[dev 0] RX: nan" in text
    assert "[dev 0] TX: nan" in text


def test_shared_output_file_opened_once(clock, tmp_path):
    path = tmp_path / "stats.txt"
    dev = FakeDevice("eth0")
    clock.on_idle = stop_after(4, traffic=lambda: dev.add_traffic(1_000, 64_000))

    task = StatsTask(devices=[dev], format="plain", file=str(path), clock=clock, interval_ms=500)
    assert task.close_file
    assert all(ctr.file is task.file and not ctr.close_file for ctr in task.counters)

    task.run()

    assert task.file.closed
    text = path.read_text()
    assert "[eth0] RX:" in text and "[eth0] TX:" in text
    assert text.count("(incl. CRC)") == 2


def test_unknown_format_opens_nothing(clock, device, tmp_path):
    path = tmp_path / "stats.txt"

    with pytest.raises(UnknownFormatError):
        StatsTask(devices=[device], format="yaml", file=str(path), clock=clock)

    assert not path.exists()


def test_bad_device_aborts_construction(clock, device, tmp_path):
    path = tmp_path / "stats.txt"

    with pytest.raises(InvalidDeviceError):
        StatsTask(devices=[device, "not a device"], format="nil", file=str(path), clock=clock)


def test_sink_failure_stops_the_loop(clock, device):
    out = io.StringIO()
    clock.on_idle = stop_after(10, traffic=lambda: device.add_traffic(10, 640))
    task = StatsTask(devices=[device], format="plain", file=out, clock=clock, interval_ms=500)
    out.close()

    with pytest.raises(ValueError):
        task.run()


def test_start_and_stop_in_background(device):
    task = StatsTask(devices=[device], format="nil", interval_ms=10)
    assert isinstance(task.clock, SystemClock)

    task.start()
    assert task.is_alive()
    with pytest.raises(RuntimeError):
        task.start()
    task.stop()
    task.join(timeout=5)

    assert not task.is_alive()
    assert task.error is None
    assert all(ctr.finalized for ctr in task.counters)


def test_stop_with_external_clock_leaves_clock_running(clock, device):
    task = StatsTask(devices=[device], format="nil", clock=clock)

    task.stop()
    task.run()

    assert clock.is_running()
    assert all(ctr.finalized for ctr in task.counters)


def test_start_stats_task_from_kwargs(clock, device):
    clock.running = False

    task = start_stats_task(clock=clock, rx_devices=[device], format="nil")
    task.join(timeout=5)

    assert not task.is_alive()
    assert [ctr.direction for ctr in task.counters] == ["rx"]
    assert task.counters[0].finalized


def test_start_stats_task_from_config(clock, device):
    clock.running = False
    config = StatsTaskConfig(tx_devices=[device], format="nil", interval_ms=250)

    task = start_stats_task(config, clock=clock)
    task.join(timeout=5)

    assert task.interval_ms == 250
    assert [ctr.direction for ctr in task.counters] == ["tx"]
    with pytest.raises(TypeError):
        start_stats_task(config, clock=clock, format="plain")


def test_background_error_is_recorded(clock):
    class FailingDevice(FakeDevice):
        def get_rx_stats(self):
            if self.rx_reads >= 1:
                raise RuntimeError("register read failed")
            return super().get_rx_stats()

    task = StatsTask(rx_devices=[FailingDevice()], format="nil", clock=clock)

    task.start()
    task.join(timeout=5)

    assert isinstance(task.error, RuntimeError)


def test_failing_update_still_finalizes_and_closes_file(clock, recorder, tmp_path, capsys):
    class FailingDevice(FakeDevice):
        def get_rx_stats(self):
            if self.rx_reads >= 1:
                raise RuntimeError("register read failed")
            return super().get_rx_stats()

    path = tmp_path / "stats.txt"
    task = StatsTask(rx_devices=[FailingDevice("bad")], tx_devices=[FakeDevice("good")],
                     format="recording", file=str(path), clock=clock)

    with pytest.raises(RuntimeError):
        task.run()

    assert task.file.closed
    assert all(ctr.finalized for ctr in task.counters)
    assert [(ev[0], ev[2]) for ev in recorder.of("final")] == [("rx", "bad"), ("tx", "good")]
    assert "finalizing" in capsys.readouterr().err
