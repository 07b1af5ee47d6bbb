"""
Voice Notes desktop GUI package.

Provides the PyQt6 shell around the Voice Notes web app: embedded browser,
tray icon, global shortcuts and the page bridge, split into focused modules
by responsibility.
"""


def main():
    """Convenience entry point that delegates to gui.main_window.main()."""
    from gui.main_window import main as _main
    _main()


__all__ = ["main"]
