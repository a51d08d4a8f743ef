import argparse
import os
import sys
import time
import traceback

import cv2
import numpy as np

from .exercise_analysis.config_utils import SUPPORTED_EXERCISES
from .trainer import FormCoachTrainer, FrameResult

_GREEN = (0, 255, 0)
_RED = (0, 0, 255)
_YELLOW = (0, 200, 255)


def _display_results(frame: np.ndarray, result: FrameResult, window: str) -> None:
    """
    Draw the metrics and feedback on the frame and show it.

    Args:
        frame: Input frame
        result: Trainer result for this frame
        window: OpenCV window name
    """
    metrics = result.metrics
    lines = [
        (f"Reps: {metrics.reps}", _GREEN),
        (f"Form: {metrics.form_quality:.0f}%", _GREEN if metrics.form_quality >= 70 else _YELLOW),
        (f"Phase: {result.exercise_state.value}  Moving: {metrics.movement_direction}", _GREEN),
        (f"Tracking: {metrics.tracking_status.value} ({metrics.detection_quality.value})", _GREEN),
        (f"Time: {metrics.session_time}", _GREEN),
    ]
    if metrics.current_angles.primary_angle is not None:
        lines.append((f"{metrics.current_angles.angle_name}: {metrics.current_angles.primary_angle:.0f} deg", _GREEN))
    for item in result.feedback[:2]:
        lines.append((item.message, _GREEN if item.severity.value == "success" else _RED))

    for idx, (text, color) in enumerate(lines):
        cv2.putText(frame, text, (10, 30 + idx * 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2)
    if metrics.rep_flash:
        cv2.rectangle(frame, (0, 0), (frame.shape[1] - 1, frame.shape[0] - 1), _GREEN, 8)
    cv2.imshow(window, frame)


def run(source, exercise: str, voice: bool = False, use_video_clock: bool = False) -> None:
    """
    Feed frames from a camera or video file through the trainer until the source ends or 'q' is pressed.

    Args:
        source: Camera device ID or video file path
        exercise: Exercise to analyze
        voice: Speak corrections through text-to-speech
        use_video_clock: Use the video position as clock instead of wall time
    """
    from .pose_detection.mediapipe_detector import MediaPipePoseDetector

    detector = MediaPipePoseDetector()
    trainer = FormCoachTrainer(exercise_type=exercise)
    voice_feedback = None
    if voice:
        from .feedback.voice_feedback import VoiceFeedback
        voice_feedback = VoiceFeedback()

    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video source: {source}")

    window = "FormCoach"
    frame_count = 0
    try:
        while cap.isOpened():
            ret, frame = cap.read()
            if not ret:
                break
            frame_count += 1
            if use_video_clock:
                now = cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
            else:
                now = time.monotonic()

            pose_frame = detector.detect(frame, now)
            result = trainer.process_frame(pose_frame)

            if voice_feedback is not None:
                message = voice_feedback.generate_feedback(result.feedback, result.rep_detected, now)
                if message:
                    voice_feedback.speak(message)

            _display_results(frame, result, window)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                break
    except KeyboardInterrupt:
        print("\n[INFO] KeyboardInterrupt received. Exiting gracefully...")
    finally:
        cap.release()
        detector.close()
        if voice_feedback is not None:
            voice_feedback.stop()
        cv2.destroyAllWindows()

    summary = trainer.summary()
    print(f"Processed {frame_count} frames.")
    print(f"Session summary: {summary.to_dict()}")


def main(argv=None):
    """Main entry point for FormCoach."""
    parser = argparse.ArgumentParser(description="FormCoach - real-time exercise form coaching")
    parser.add_argument('--mode', type=str, choices=['camera', 'video'], default='camera',
                        help='Run mode: camera (default) or video')
    parser.add_argument('--video', type=str, help='Path to the video file to analyze (required if mode=video)')
    parser.add_argument('--camera', type=int, default=0, help='Camera device ID')
    parser.add_argument('--exercise', type=str, default='squat', choices=list(SUPPORTED_EXERCISES),
                        help='Exercise type (default: squat)')
    parser.add_argument('--voice', action='store_true', help='Speak form corrections')
    args = parser.parse_args(argv)

    if args.mode == 'video':
        if not args.video:
            parser.error("--video is required when mode is 'video'")
        if not os.path.isfile(args.video):
            print(f"Video file not found: {args.video}")
            return 1
        source, use_video_clock = args.video, True
    else:
        source, use_video_clock = args.camera, False

    try:
        print(f"Starting FormCoach ({args.exercise}, {args.mode} mode)...")
        run(source, args.exercise, voice=args.voice, use_video_clock=use_video_clock)
    except Exception as e:
        print(f"Error running FormCoach: {e}")
        traceback.print_exc()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
