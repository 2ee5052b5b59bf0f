"""Static metadata describing PinQuiz."""

APP_NAME = "PinQuiz"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "PinQuiz is a live multiplayer quiz server. A host builds a multiple-choice quiz, "
    "opens a session behind a six digit PIN, and players join from any browser to "
    "answer against the clock."
)
