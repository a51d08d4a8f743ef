import pytest

from formcoach.exercise_analysis import ExerciseState, PushupAnalyzer


def test_measurements(pushup_frame):
    measurements = PushupAnalyzer().calculate_measurements(pushup_frame(90, 0.0))
    assert measurements["elbow_angle"] == pytest.approx(90.0)
    assert measurements["hip_offset"] == pytest.approx(0.0, abs=1e-9)
    assert measurements["body_tilt"] == pytest.approx(0.0, abs=1e-9)


def test_standing_subject_is_not_in_position(standing_frame):
    analyzer = PushupAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(standing_frame(170, 0.0), session, 0.0)
    assert not result.in_position
    assert not result.is_exercising
    assert result.form_quality == 0.0
    assert [item.message for item in result.feedback] == ["Get into push-up position to start analysis"]


def test_out_of_position_frames_never_transition(standing_frame):
    analyzer = PushupAnalyzer()
    session = analyzer.create_session()
    # A deep knee bend while standing would look like a bottom position if it were not gated
    for i, angle in enumerate([170, 60, 60, 170, 170, 170, 170, 170]):
        analyzer.analyze(standing_frame(angle, i * 0.2), session, i * 0.2)
    assert session.state == ExerciseState.NEUTRAL
    assert session.rep_count == 0


def test_counts_a_rep(pushup_frame):
    analyzer = PushupAnalyzer()
    session = analyzer.create_session()
    frames = []
    for phase_start, angle in ((0.0, 160), (0.4, 80), (0.8, 160)):
        frames.extend(pushup_frame(angle, phase_start + i * 0.02) for i in range(5))
    results = [analyzer.analyze(f, session, f.timestamp) for f in frames]

    assert session.rep_count == 1
    assert results[-1].rep_detected
    assert results[-1].feedback[0].message == "Rep detected! Excellent push-up!"
    assert all(r.is_exercising for r in results[5:])
    bottom = results[7]
    assert bottom.form_quality == 100.0
    assert "Perfect push-up depth!" in [item.message for item in bottom.feedback]
    assert "Great body alignment" in [item.message for item in bottom.feedback]


def test_sagging_hips(pushup_frame):
    analyzer = PushupAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(pushup_frame(160, 0.0, hip_drop=0.1), session, 0.0)
    assert result.in_position
    assert result.form_quality == 85.0
    assert result.feedback[0].message == "Raise your hips - keep your body in a straight line"


def test_piked_hips(pushup_frame):
    analyzer = PushupAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(pushup_frame(160, 0.0, hip_drop=-0.1), session, 0.0)
    assert result.feedback[0].message == "Lower your hips - keep your body in a straight line"
