"""Markdown to HTML rendering with embedded, clickable quizzes."""

from mdquiz.escape import escape_html
from mdquiz.md2html import markdown_to_html
from mdquiz.quizparse import QuizOption, QuizQuestion, parse_quiz
from mdquiz.quizplayer import QuizPage, QuizState, QuizStore, render_quiz

__all__ = [
    "escape_html",
    "markdown_to_html",
    "parse_quiz",
    "QuizOption",
    "QuizQuestion",
    "QuizPage",
    "QuizState",
    "QuizStore",
    "render_quiz",
]

__version__ = "0.3.0"
