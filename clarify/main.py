"""Entry point for Clarify.

Usage:
    python -m clarify.main                     # compose window + tray
    python -m clarify.main --check "TEXT"      # one-shot check, prints issues
"""
import sys
import signal
import asyncio
import logging
import argparse


def setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _start_loop_pump(loop):
    """Start a QTimer that runs one asyncio loop iteration per tick.

    Engine callbacks and Qt widgets then share the Qt main thread. Only
    the blocking provider requests run elsewhere (worker threads), and
    their results come back through the loop.
    """
    from PyQt5.QtCore import QTimer

    def _pump():
        loop.call_soon(loop.stop)
        loop.run_forever()

    timer = QTimer()
    timer.setInterval(10)
    timer.timeout.connect(_pump)
    timer.start()
    return timer  # caller must keep reference to prevent GC


def run_gui():
    """Run the compose window, surface watcher and tray in one process."""
    from PyQt5.QtWidgets import QApplication
    from clarify.config import Config
    from clarify.engine import GrammarEngine
    from clarify.orchestrator import CheckOrchestrator
    from clarify.qt_host import QtAnnotationLayer, QtSurfaceWatcher
    from clarify.compose import ComposeWindow
    from clarify.tray import TrayIcon

    app = QApplication(sys.argv)
    app.setApplicationName("Clarify")
    app.setQuitOnLastWindowClosed(False)

    config = Config()
    setup_logging(config.debug_logging)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    engine = GrammarEngine(
        CheckOrchestrator(),
        QtAnnotationLayer(),
        config.provider_config,
        loop=loop,
        quiet_period_ms=config.debounce_ms,
    )
    if not config.enabled:
        engine.disable()

    window = ComposeWindow(engine)
    watcher = QtSurfaceWatcher(engine, app)
    watcher.start()
    window.show()

    tray = TrayIcon(config, engine, window)
    tray.show()

    pump = _start_loop_pump(loop)
    exit_code = app.exec_()

    pump.stop()
    watcher.stop()
    loop.run_until_complete(engine.join())
    loop.run_until_complete(loop.shutdown_default_executor())
    loop.close()
    sys.exit(exit_code)


def run_check(text: str) -> int:
    """Check text once with the configured providers and print the findings."""
    from clarify.config import Config
    from clarify.orchestrator import CheckOrchestrator

    config = Config()
    setup_logging(config.debug_logging)

    result = asyncio.run(CheckOrchestrator().check(text, config.provider_config()))
    if not result.ok:
        print(f"Check failed: {result.error}", file=sys.stderr)
        return 1

    print(f"{len(result.errors)} issue(s) [{result.source.value}]")
    for error in result.errors:
        suggestions = ", ".join(error.replacements) or "-"
        print(f"  {error.offset}+{error.length} {text[error.offset:error.end]!r} "
              f"-> {suggestions}  ({error.message})")
    return 0


def main():
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    parser = argparse.ArgumentParser(description="Clarify grammar checker")
    parser.add_argument("--check", metavar="TEXT",
                        help="Check TEXT once and print the issues (no GUI)")
    args = parser.parse_args()

    if args.check is not None:
        sys.exit(run_check(args.check))
    run_gui()


if __name__ == "__main__":
    main()
