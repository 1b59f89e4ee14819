"""
quizparse.py — Parse the body of a ```quiz fence into questions.

Fence schema (summary):
- "N. text" starts a new question; following plain lines continue its text.
- "A) text" or "A. text" adds option A to the open question (uppercase A-Z).
- "Correct Answer: B", "Answer: B" or "Answers: B" (any case) names the
  correct option. Bold markers and a parenthesised letter are tolerated.
- "Explanation: text" attaches an optional explanation shown after answering.
- Blank lines are ignored. A question without text or without options is
  dropped; parsing never fails.

Example:
    1. What is 2+2?
    A) 3
    B) 4

    Correct Answer: B
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

# ------------------------------ Data models ------------------------------

@dataclass
class QuizOption:
    label: str          # single uppercase letter, unique within its question
    text: str
    correct: bool = False

@dataclass
class QuizQuestion:
    index: int          # 1-based position within its quiz
    text: str
    options: List[QuizOption] = field(default_factory=list)
    correct_answer: str = ''
    explanation: Optional[str] = None

    def option(self, label: str) -> Optional[QuizOption]:
        for opt in self.options:
            if opt.label == label:
                return opt
        return None

@dataclass
class _OpenQuestion:
    text_lines: List[str]
    options: List[QuizOption] = field(default_factory=list)
    correct_answer: str = ''
    explanation: Optional[str] = None
    line_no: int = 0

    @property
    def text(self) -> str:
        return ' '.join(self.text_lines).replace('**', '').strip()

# ------------------------------ Helpers ------------------------------

QUESTION_RE = re.compile(r'^\d+\.\s+(.*)$')
OPTION_RE = re.compile(r'^([A-Z])[).]\s+(.*)$')
ANSWER_RE = re.compile(r'^\**\s*(?:Correct\s+Answer|Answers?)\s*:\s*\**\s*\(?([A-Z])\b', re.IGNORECASE)
EXPLANATION_RE = re.compile(r'^\**\s*Explanation\s*:\s*\**\s*(.*)$', re.IGNORECASE)


def _scan(text: str) -> List[_OpenQuestion]:
    """Group fence lines into question blocks, keeping every block seen."""
    blocks: List[_OpenQuestion] = []
    current: Optional[_OpenQuestion] = None

    for line_no, raw in enumerate(text.replace('\r\n', '\n').split('\n'), 1):
        line = raw.strip()
        if not line:
            continue

        m_q = QUESTION_RE.match(line)
        if m_q:
            current = _OpenQuestion(text_lines=[m_q.group(1)], line_no=line_no)
            blocks.append(current)
            continue
        if current is None:
            # nothing to attach to before the first numbered line
            continue

        m_opt = OPTION_RE.match(line)
        if m_opt:
            current.options.append(QuizOption(label=m_opt.group(1), text=m_opt.group(2).strip()))
            continue

        m_ans = ANSWER_RE.match(line)
        if m_ans:
            label = m_ans.group(1).upper()
            current.correct_answer = label
            for opt in current.options:
                if opt.label == label:
                    opt.correct = True
                    break
            continue

        m_exp = EXPLANATION_RE.match(line)
        if m_exp:
            current.explanation = m_exp.group(1).replace('**', '').strip() or None
            continue

        current.text_lines.append(line)

    return blocks


def parse_quiz(text: str) -> List[QuizQuestion]:
    """Return the questions of a quiz fence, numbered from 1 in order."""
    questions: List[QuizQuestion] = []
    for block in _scan(text):
        q_text = block.text
        if not q_text or not block.options:
            logging.debug(f"Dropping quiz question at line {block.line_no}: "
                          f"{'no text' if not q_text else 'no options'}")
            continue
        questions.append(QuizQuestion(
            index=len(questions) + 1,
            text=q_text,
            options=block.options,
            correct_answer=block.correct_answer,
            explanation=block.explanation,
        ))
    return questions

# ------------------------------ Validation ------------------------------

def validate_question(q: QuizQuestion):
    if len(q.options) < 2:
        raise ValueError(f"Question {q.index} needs at least two options; found {len(q.options)}.")
    labels = [opt.label for opt in q.options]
    dupes = sorted({lb for lb in labels if labels.count(lb) > 1})
    if dupes:
        raise ValueError(f"Question {q.index} repeats option label(s) {', '.join(dupes)}.")
    if not q.correct_answer:
        raise ValueError(f"Question {q.index} has no 'Correct Answer:' line.")
    if q.option(q.correct_answer) is None:
        raise ValueError(f"Question {q.index} names answer {q.correct_answer}, "
                         f"but only has options {', '.join(labels)}.")
    n_correct = sum(1 for opt in q.options if opt.correct)
    if n_correct != 1:
        raise ValueError(f"Question {q.index} must have exactly one correct option; found {n_correct}.")


def validate_quiz(text: str) -> List[str]:
    """Collect authoring problems for a whole fence without raising."""
    problems: List[str] = []
    emitted = 0
    for block in _scan(text):
        if not block.text:
            problems.append(f"Line {block.line_no}: question has no text and will be skipped.")
            continue
        if not block.options:
            problems.append(f"Line {block.line_no}: question has no options and will be skipped.")
            continue
        emitted += 1
        q = QuizQuestion(index=emitted, text=block.text, options=block.options,
                         correct_answer=block.correct_answer)
        try:
            validate_question(q)
        except ValueError as e:
            problems.append(f"Line {block.line_no}: {e}")
    if emitted == 0:
        problems.append("Quiz has no usable questions and will not be shown.")
    return problems
