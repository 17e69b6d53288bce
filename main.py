"""
gesturematch - Gesture & Expression Matching Game

Entry point for the application.
"""
import argparse
import logging
import random
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

logger = logging.getLogger("gesturematch")


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="gesturematch - match gestures and expressions against shuffled targets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Keys in the debug window:\n"
            "  s  new game      p  pause/resume\n"
            "  n  skip target   w  webcam on/off\n"
            "  q  quit"
        ),
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    modality = parser.add_mutually_exclusive_group()
    modality.add_argument(
        "--hands-only",
        action="store_true",
        help="Only run hand gesture detection",
    )
    modality.add_argument(
        "--face-only",
        action="store_true",
        help="Only run face expression detection",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for target shuffling (overrides config)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show the camera feed with target, decision and score overlay",
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    return parser.parse_args()


def draw_overlay(frame, view):
    """Draw game state on a frame for debug mode."""
    import cv2
    from gesturematch.labels import CATALOG

    def name(label):
        return CATALOG[label].name if label is not None else "None"

    current, total = view.progress
    lines = [
        (f"Target: {name(view.target)}", (0, 255, 255), 0.9),
        (f"You: {name(view.decision)}", (0, 255, 0), 0.8),
        (f"Score: {view.score}   Round: {current}/{total}   [{view.status.value}]", (255, 255, 255), 0.6),
    ]
    if view.target is not None and CATALOG[view.target].tip:
        lines.append((CATALOG[view.target].tip, (200, 200, 200), 0.5))
    if view.message:
        lines.append((view.message, (0, 200, 255), 0.7))
    if not view.hand_available:
        lines.append(("Gesture detection inactive", (0, 0, 255), 0.5))
    if not view.face_available:
        lines.append(("Expression detection inactive", (0, 0, 255), 0.5))

    for i, (text, color, scale) in enumerate(lines):
        cv2.putText(
            frame, text, (10, 30 + i * 28),
            cv2.FONT_HERSHEY_SIMPLEX, scale, color, 2 if scale > 0.6 else 1,
        )
    return frame


def run(config, args):
    """Run the game on the Qt event loop."""
    import signal
    from PyQt5.QtCore import QCoreApplication, QTimer
    from gesturematch.webcam import GameController

    app = QCoreApplication(sys.argv)

    rng = random.Random(args.seed if args.seed is not None else config.game.seed)
    controller = GameController(
        config,
        enable_hands=not args.face_only,
        enable_face=not args.hands_only,
        rng=rng,
    )

    def handle_state(view):
        logger.debug(
            "target=%s decision=%s score=%d progress=%s status=%s",
            view.target, view.decision, view.score, view.progress, view.status.value,
        )

    controller.state_changed.connect(handle_state)
    controller.decision_changed.connect(lambda name: logger.info("Decision: %s", name))
    controller.capability_changed.connect(
        lambda modality, ok, reason: logger.info(
            "%s detection %s%s", modality, "active" if ok else "inactive",
            f" ({reason})" if reason else "",
        )
    )

    if args.debug:
        import cv2
        from gesturematch.webcam.hand_tracker import draw_hands

        last_hands = []

        def handle_hands(hands):
            last_hands[:] = hands

        def handle_frame(frame):
            canvas = draw_hands(frame.copy(), last_hands)
            cv2.imshow("gesturematch", draw_overlay(canvas, controller.view()))

        def poll_keys():
            # Read even while no frames arrive (webcam off)
            key = cv2.waitKey(1) & 0xFF
            if key == ord('q'):
                app.quit()
            elif key == ord('s'):
                controller.start()
            elif key == ord('p'):
                if controller.view().status.value == "Active":
                    controller.stop()
                else:
                    controller.resume()
            elif key == ord('n'):
                controller.skip()
            elif key == ord('w'):
                controller.toggle_webcam()

        controller.worker.hands_detected.connect(handle_hands)
        controller.worker.frame_ready.connect(handle_frame)

        key_timer = QTimer()
        key_timer.timeout.connect(poll_keys)
        key_timer.start(30)

    def signal_handler(signum, frame):
        """Handle Ctrl+C and kill signals gracefully."""
        logger.info("Received signal %d, shutting down...", signum)
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Let the Python interpreter see signals while the Qt loop runs
    wakeup = QTimer()
    wakeup.start(200)
    wakeup.timeout.connect(lambda: None)

    if not controller.set_webcam(True):
        logger.error("Could not open camera")
        return 1

    if not args.debug:
        # Headless: nobody can press start
        controller.start()

    try:
        result = app.exec_()
    finally:
        controller.shutdown()
        if args.debug:
            import cv2
            cv2.destroyAllWindows()

    return result


def main():
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    # Load config
    from gesturematch import load_config
    config = load_config(args.config)

    logger.info("gesturematch starting...")
    logger.info("  Hands: %s", "off" if args.face_only else "on")
    logger.info("  Face: %s", "off" if args.hands_only else "on")
    logger.info("  Debug: %s", args.debug)

    return run(config, args)


if __name__ == "__main__":
    sys.exit(main())
