#!/usr/bin/env python3
"""
quizfmt.py — Normalise or lint the ```quiz fences of a Markdown document.

Every quiz fence is parsed and written back in canonical form:

    1. Question text
    A) Option
    B) Option

    Correct Answer: B
    Explanation: optional text

Questions are separated by one blank line; text outside quiz fences is left
as is. Questions the renderer would drop (no text or no options) are dropped
here too, with a warning.

Usage:
    python -m mdquiz.quizfmt post.md [-o post.md] [--check]
"""

import argparse
import logging
import re
import sys
from typing import List, Optional

from mdquiz.logger import setup_logger
from mdquiz.quizparse import QuizQuestion, parse_quiz, validate_quiz

QUIZ_FENCE_RE = re.compile(r'```quiz[ \t]*\n(.*?)```', re.DOTALL)


# Ensure exactly one blank line before the next emitted section
def _ensure_blank(out: List[str]):
    if out and out[-1] != "":
        out.append("")


def emit_question(q: QuizQuestion) -> List[str]:
    out = [f"{q.index}. {q.text}"]
    for opt in q.options:
        out.append(f"{opt.label}) {opt.text}")
    if q.correct_answer or q.explanation:
        _ensure_blank(out)
    if q.correct_answer:
        out.append(f"Correct Answer: {q.correct_answer}")
    if q.explanation:
        out.append(f"Explanation: {q.explanation}")
    return out


def emit_quiz(questions: List[QuizQuestion]) -> str:
    out: List[str] = []
    for q in questions:
        _ensure_blank(out)
        out.extend(emit_question(q))
    return "\n".join(out)


def format_document(md: str) -> str:
    """Rewrite every quiz fence of a document in canonical form."""
    def _fence(m: re.Match) -> str:
        body = m.group(1)
        questions = parse_quiz(body)
        for p in validate_quiz(body):
            logging.warning(p)
        return "```quiz\n" + emit_quiz(questions) + "\n```"

    return QUIZ_FENCE_RE.sub(_fence, md)


def lint_document(md: str) -> List[str]:
    problems: List[str] = []
    for n, m in enumerate(QUIZ_FENCE_RE.finditer(md), 1):
        line = md.count("\n", 0, m.start()) + 1
        problems.extend(f"Quiz {n} (line {line}): {p}" for p in validate_quiz(m.group(1)))
    return problems


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Normalise or check quiz fences in a Markdown file.")
    ap.add_argument("input", help="Input Markdown file")
    ap.add_argument("-o", "--output", help="Output Markdown file (default: stdout)")
    ap.add_argument("--check", action="store_true", help="Only report problems; exit 1 if any")
    args = ap.parse_args(argv)
    setup_logger()

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            md = f.read()
    except OSError as e:
        logging.error(f"Cannot read {args.input}: {e}")
        return 1

    if args.check:
        problems = lint_document(md)
        for p in problems:
            print(f"{args.input}: {p}")
        return 1 if problems else 0

    out = format_document(md)
    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(out)
        except OSError as e:
            logging.error(f"Cannot write {args.output}: {e}")
            return 1
    else:
        print(out)
    return 0

if __name__ == "__main__":
    sys.exit(main())
