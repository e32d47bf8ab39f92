import pytest

from progress import ProgressReporter, ProgressSnapshot


def test_snapshot_derives_fraction_and_label():
    snap = ProgressSnapshot(targets=("Nevada", "Arizona", "Georgia", "Michigan"), current_index=1, status="")
    assert snap.fraction == pytest.approx(0.5)
    assert snap.percent == 50.0
    assert snap.active_label == "Arizona"
    assert snap.headline == "Arizona (2 of 4)"


def test_reporter_renders_every_change():
    rendered = []
    reporter = ProgressReporter(["Nevada", "Arizona"], render=rendered.append)

    reporter.set_status("Looking for search box for Nevada...")
    reporter.set_current_index(1)

    assert [snap.status for snap in rendered] == ["Looking for search box for Nevada..."] * 2
    assert rendered[-1].current_index == 1


def test_snapshots_are_detached_from_reporter_state():
    reporter = ProgressReporter(["Nevada", "Arizona"])
    before = reporter.snapshot()
    reporter.set_status("changed")
    reporter.set_current_index(1)
    assert before.status == ""
    assert before.current_index == 0


def test_render_failures_do_not_escape(capsys):
    def broken(_snapshot):
        raise RuntimeError("page navigated")

    reporter = ProgressReporter(["Nevada"], render=broken)
    reporter.set_status("still fine")

    assert reporter.snapshot().status == "still fine"
    assert "page navigated" in capsys.readouterr().out


def test_index_out_of_range_is_rejected():
    reporter = ProgressReporter(["Nevada"])
    with pytest.raises(IndexError):
        reporter.set_current_index(1)


def test_empty_targets_rejected():
    with pytest.raises(ValueError):
        ProgressReporter([])
