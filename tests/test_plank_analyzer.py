import pytest

from formcoach.exercise_analysis import ExerciseState, PlankAnalyzer


def _messages(result):
    return [item.message for item in result.feedback]


def test_straight_body_line(plank_frame):
    measurements = PlankAnalyzer().calculate_measurements(plank_frame(0.0))
    assert measurements["body_line_angle"] == pytest.approx(180.0)
    assert measurements["hip_offset"] == pytest.approx(0.0, abs=1e-9)
    assert measurements["elbow_offset"] == pytest.approx(0.0, abs=1e-9)


def test_hold_must_be_confirmed(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    results = [analyzer.analyze(plank_frame(i * 0.1), session, i * 0.1) for i in range(6)]
    assert [r.is_exercising for r in results] == [False, False, False, False, True, True]
    assert results[-1].form_quality == 100.0
    assert "Perfect plank alignment!" in _messages(results[-1])
    assert "Excellent core engagement!" in _messages(results[-1])


def test_plank_never_counts_reps(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    for i in range(40):
        drop = 0.08 if (i // 5) % 2 else 0.0
        result = analyzer.analyze(plank_frame(i * 0.1, hip_drop=drop), session, i * 0.1)
        assert not result.rep_detected
    assert session.rep_count == 0
    assert session.state == ExerciseState.NEUTRAL


def test_sagging_hips(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(plank_frame(0.0, hip_drop=0.08), session, 0.0)
    assert result.in_position
    assert "Raise your hips - avoid sagging" in _messages(result)
    assert "Straighten your body line" in _messages(result)
    assert result.form_quality == 45.0


def test_piked_hips(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(plank_frame(0.0, hip_drop=-0.08), session, 0.0)
    assert "Lower your hips - avoid pike position" in _messages(result)


def test_sagging_plank_is_not_exercising(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    results = [analyzer.analyze(plank_frame(i * 0.1, hip_drop=0.08), session, i * 0.1) for i in range(8)]
    assert not any(r.is_exercising for r in results)


def test_elbows_not_under_shoulders(plank_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    result = analyzer.analyze(plank_frame(0.0, elbow_shift=0.2), session, 0.0)
    assert "Keep elbows under shoulders" in _messages(result)
    assert result.form_quality == 85.0


def test_standing_resets_hold(plank_frame, standing_frame):
    analyzer = PlankAnalyzer()
    session = analyzer.create_session()
    for i in range(5):
        analyzer.analyze(plank_frame(i * 0.1), session, i * 0.1)
    assert session.in_position_streak == 5

    result = analyzer.analyze(standing_frame(170, 0.6), session, 0.6)
    assert not result.in_position
    assert result.form_quality == 0.0
    assert _messages(result) == ["Get into plank position to start analysis"]
    assert session.in_position_streak == 0
