"""
Voice Notes - desktop wrapper for the Voice Notes web app.

Loads https://voicenotes.com/app in an embedded browser with persistent
login, global recording shortcuts, a tray menu and system microphone status.
"""
from gui.main_window import main

if __name__ == "__main__":
    main()
