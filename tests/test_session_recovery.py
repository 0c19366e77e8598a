import json

from backend.training_session import TrainingSessionRecorder


def _recorder(sample_chain, wall_clock, base):
    rec = TrainingSessionRecorder(
        sample_chain, "user-1", ["s1", "s2"], time_func=wall_clock, recovery_base=base
    )
    rec.record_step_status("s1", "prompted")
    rec.record_step_notes("s2", "try again tomorrow")
    rec.set_session_notes("stopped early")
    return rec


def test_session_state_roundtrip(tmp_path, sample_chain, wall_clock):
    rec = _recorder(sample_chain, wall_clock, tmp_path / "session_recovery")
    state = rec.export_state()
    recovered = TrainingSessionRecorder.from_state(state, time_func=wall_clock)
    assert state == recovered.export_state()
    assert not recovered.record_step_status("s3", "independent")


def test_recovery_files_and_clear(tmp_path, sample_chain, wall_clock):
    base = tmp_path / "session_recovery"
    rec = _recorder(sample_chain, wall_clock, base)
    rec.save_for_later()
    f1 = base.with_name(base.name + "_1.json")
    f2 = base.with_name(base.name + "_2.json")
    assert f1.exists() and f2.exists()
    with f1.open() as fh:
        data1 = json.load(fh)
    with f2.open() as fh:
        data2 = json.load(fh)
    assert data1 == data2 == rec.to_dict()

    # simulate loss of primary file and ensure backup loads
    f1.unlink()
    assert TrainingSessionRecorder.load_recovery_state(base) == data2

    TrainingSessionRecorder.clear_recovery_state(base)
    assert not f2.exists()
    assert TrainingSessionRecorder.load_from_recovery(base) is None


def test_resume_keeps_pause_bookkeeping(tmp_path, sample_chain, wall_clock):
    base = tmp_path / "session_recovery"
    rec = _recorder(sample_chain, wall_clock, base)
    start = rec.start_time
    wall_clock.advance(60)
    rec.pause()
    rec.save_for_later()

    wall_clock.advance(600)
    resumed = TrainingSessionRecorder.load_from_recovery(base, time_func=wall_clock)
    assert resumed.is_paused
    resumed.resume()
    wall_clock.advance(60)
    record = resumed.finalize()
    assert record["date"] == start
    assert record["duration"] == 2
    assert record["notes"] == "stopped early"


def test_time_away_after_save_is_not_counted(tmp_path, sample_chain, wall_clock):
    base = tmp_path / "session_recovery"
    rec = _recorder(sample_chain, wall_clock, base)
    wall_clock.advance(5 * 60)
    rec.save_for_later()
    assert rec.is_paused

    wall_clock.advance(24 * 60 * 60)
    resumed = TrainingSessionRecorder.load_from_recovery(base, time_func=wall_clock)
    assert resumed.resume()
    wall_clock.advance(5 * 60)
    assert resumed.finalize()["duration"] == 10


def test_corrupt_primary_falls_back(tmp_path, sample_chain, wall_clock):
    base = tmp_path / "session_recovery"
    rec = _recorder(sample_chain, wall_clock, base)
    rec.save_for_later()
    base.with_name(base.name + "_1.json").write_text("{not json")
    assert TrainingSessionRecorder.load_recovery_state(base) == rec.to_dict()
