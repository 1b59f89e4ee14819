"""
quizplayer.py — Clickable multiple-choice quizzes inside rendered HTML.

The page is a BeautifulSoup document. QuizPage.discover() finds every
<div class="quiz-container" data-quiz-content="…"> produced by md2html, parses
its fence text, seeds one QuizState per container in the page's QuizStore and
renders the first question into it. Clicks are delivered to QuizPage.click()
(or the transition methods directly); each transition mutates only that
container's state and re-renders only that container.

States per quiz: Unconfirmed(i, selected?), Confirmed(i, selected), Finished.
"""

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional
from urllib.parse import unquote

from bs4 import BeautifulSoup, Tag

from mdquiz.config import RenderConfig
from mdquiz.escape import escape_html
from mdquiz.quizparse import QuizQuestion, parse_quiz

CONTAINER_SELECTOR = '.quiz-container[data-quiz-content]'
PROCESSED_ATTR = 'data-quiz-processed'
ACTION_ATTR = 'data-quiz-action'

# ------------------------------ State ------------------------------

@dataclass
class QuizState:
    questions: List[QuizQuestion]
    current_index: int = 0
    score: int = 0
    selected: Optional[str] = None
    confirmed: bool = False

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def finished(self) -> bool:
        return self.current_index >= self.total

    @property
    def question(self) -> Optional[QuizQuestion]:
        return None if self.finished else self.questions[self.current_index]

    def reset(self):
        self.current_index = 0
        self.score = 0
        self.selected = None
        self.confirmed = False


class QuizStore:
    """Quiz states of one page, keyed by container id.

    Ids come from a per-store counter and are never handed out twice, so
    containers discovered on later content changes cannot collide with
    earlier ones.
    """

    def __init__(self, id_prefix: str = 'quiz-container-'):
        self.id_prefix = id_prefix
        self._states: Dict[str, QuizState] = {}
        self._ids = itertools.count()

    def new_id(self) -> str:
        return f"{self.id_prefix}{next(self._ids)}"

    def get(self, container_id: str) -> Optional[QuizState]:
        return self._states.get(container_id)

    def put(self, container_id: str, state: QuizState):
        self._states[container_id] = state

    def discard(self, container_id: str):
        self._states.pop(container_id, None)

    def clear(self):
        self._states.clear()

    def __contains__(self, container_id: str) -> bool:
        return container_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

# ------------------------------ Rendering ------------------------------

def _percent(part: int, whole: int) -> int:
    # half-up, like Math.round
    return int(math.floor(100 * part / whole + 0.5))


def score_medal(pct: int) -> str:
    if pct == 100:
        return '🏆'
    if pct >= 70:
        return '🎉'
    if pct >= 40:
        return '👍'
    return '📚'


def score_message(pct: int) -> str:
    if pct == 100:
        return 'Perfect score!'
    if pct >= 70:
        return 'Great job!'
    if pct >= 40:
        return 'Good effort!'
    return 'Keep studying!'


def _option_class(state: QuizState, label: str, correct: bool) -> str:
    if state.confirmed:
        if correct:
            return 'quiz-option option-correct'
        if label == state.selected:
            return 'quiz-option option-wrong'
        return 'quiz-option option-muted'
    if label == state.selected:
        return 'quiz-option option-selected'
    return 'quiz-option'


def _render_score_screen(state: QuizState) -> str:
    pct = _percent(state.score, state.total)
    return (
        '<div class="quiz-score-screen">'
        f'<div class="quiz-score-medal">{score_medal(pct)}</div>'
        f'<div class="quiz-score-value">{state.score} / {state.total}</div>'
        f'<div class="quiz-score-percent">{pct}%</div>'
        f'<div class="quiz-score-msg">{score_message(pct)}</div>'
        f'<div class="quiz-score-bar-wrap"><div class="quiz-score-bar" style="width:{pct}%"></div></div>'
        f'<button type="button" class="quiz-restart-btn" {ACTION_ATTR}="restart">Try Again</button>'
        '</div>'
    )


def render_quiz(state: QuizState) -> str:
    """Render the current screen of a quiz as an HTML fragment."""
    if state.finished:
        return _render_score_screen(state)

    q = state.questions[state.current_index]
    idx = state.current_index
    is_last = idx == state.total - 1

    options = []
    for opt in q.options:
        cls = _option_class(state, opt.label, opt.correct)
        if state.confirmed:
            attrs = 'disabled'
        else:
            attrs = f'{ACTION_ATTR}="select" data-quiz-question="{idx}" data-quiz-label="{escape_html(opt.label)}"'
        options.append(
            f'<button type="button" class="{cls}" {attrs}>'
            f'<span class="option-key">{escape_html(opt.label)}</span>'
            f'<span class="option-text">{escape_html(opt.text)}</span>'
            '</button>'
        )

    feedback = ''
    if state.confirmed:
        if state.selected == q.correct_answer:
            feedback = '<div class="quiz-feedback show correct">✓ Correct!</div>'
        elif q.correct_answer:
            feedback = (f'<div class="quiz-feedback show incorrect">'
                        f'✗ The correct answer is {escape_html(q.correct_answer)}</div>')
        else:
            feedback = '<div class="quiz-feedback show incorrect">✗ Incorrect.</div>'
        if q.explanation:
            feedback += f'<p class="quiz-explanation">{escape_html(q.explanation)}</p>'

    check_disabled = ' disabled' if not state.selected or state.confirmed else ''
    next_disabled = '' if state.confirmed else ' disabled'
    next_label = 'See Score' if is_last else 'Next Question →'

    return (
        '<div class="quiz-header">'
        f'<span class="quiz-progress-text">Question {idx + 1} of {state.total}</span>'
        f'<span class="quiz-progress-count">{idx} / {state.total}</span>'
        f'<span class="quiz-score-counter">Score: {state.score}</span>'
        '</div>'
        f'<div class="quiz-progress-bar-wrap"><div class="quiz-progress-bar" style="width:{_percent(idx, state.total)}%"></div></div>'
        '<div class="quiz-body">'
        f'<p class="quiz-question-text">{escape_html(q.text)}</p>'
        f'<div class="quiz-options">{"".join(options)}</div>'
        f'{feedback}'
        '<div class="quiz-actions">'
        f'<button type="button" class="quiz-check-btn" {ACTION_ATTR}="confirm"{check_disabled}>Confirm</button>'
        f'<button type="button" class="quiz-next-btn" {ACTION_ATTR}="advance"{next_disabled}>{next_label}</button>'
        '</div>'
        '</div>'
    )

# ------------------------------ Controller ------------------------------

class QuizPage:
    """One page of rendered content and the quiz states living in it."""

    def __init__(self, html: str = '', store: Optional[QuizStore] = None,
                 config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self.store = store if store is not None else QuizStore()
        self.soup = BeautifulSoup(html, 'html.parser')

    def html(self) -> str:
        return str(self.soup)

    def set_content(self, html: str) -> List[str]:
        """Swap in new page content and hydrate any new quiz containers."""
        self.soup = BeautifulSoup(html, 'html.parser')
        for container_id in list(self.store):
            if self.container(container_id) is None:
                self.store.discard(container_id)
        return self.discover()

    def close(self):
        """Page navigation: every quiz state is discarded."""
        self.store.clear()
        self.soup = BeautifulSoup('', 'html.parser')

    def container(self, container_id: str) -> Optional[Tag]:
        return self.soup.find(id=container_id)

    def discover(self) -> List[str]:
        """Initialise every quiz container without a live state; return their ids."""
        started: List[str] = []
        for el in self.soup.select(CONTAINER_SELECTOR):
            # a processed marker without a stored state comes from a saved page
            if el.get(PROCESSED_ATTR) and el.get('id') in self.store:
                continue
            questions = parse_quiz(unquote(el.get('data-quiz-content', '')))
            if not questions:
                logging.debug("Quiz container has no usable questions; leaving it unrendered")
                continue
            if not el.get('id') or el['id'] in self.store:
                el['id'] = self._fresh_id()
            self.store.put(el['id'], QuizState(questions=questions))
            el[PROCESSED_ATTR] = 'true'
            self._render(el['id'])
            started.append(el['id'])
        if started:
            logging.info(f"Initialised {len(started)} quiz(zes): {', '.join(started)}")
        return started

    def _fresh_id(self) -> str:
        container_id = self.store.new_id()
        while self.soup.find(id=container_id) is not None:
            container_id = self.store.new_id()
        return container_id

    def _lookup(self, container_id: str) -> Optional[QuizState]:
        state = self.store.get(container_id)
        if state is None or self.container(container_id) is None:
            logging.debug(f"Ignoring event for unknown quiz container {container_id!r}")
            return None
        return state

    def _render(self, container_id: str):
        el = self.container(container_id)
        el.clear()
        fragment = BeautifulSoup(render_quiz(self.store.get(container_id)), 'html.parser')
        for node in list(fragment.contents):
            el.append(node)

    def _commit(self, state: QuizState, label: str):
        state.selected = label
        state.confirmed = True
        if label == state.question.correct_answer:
            state.score += 1

    def select(self, container_id: str, label: str, question_index: Optional[int] = None) -> bool:
        state = self._lookup(container_id)
        if state is None or state.finished or state.confirmed:
            return False
        if question_index is not None and question_index != state.current_index:
            logging.debug(f"Stale click for question {question_index} in {container_id}")
            return False
        if state.question.option(label) is None:
            return False
        if state.selected == label:
            if self.config.quiz_confirm_mode != 'tap-twice':
                return False
            self._commit(state, label)
        else:
            state.selected = label
        self._render(container_id)
        return True

    def confirm(self, container_id: str) -> bool:
        state = self._lookup(container_id)
        if state is None or state.finished or state.confirmed or not state.selected:
            return False
        self._commit(state, state.selected)
        self._render(container_id)
        return True

    def advance(self, container_id: str) -> bool:
        state = self._lookup(container_id)
        if state is None or not state.confirmed:
            return False
        state.current_index += 1
        state.selected = None
        state.confirmed = False
        self._render(container_id)
        return True

    def restart(self, container_id: str) -> bool:
        state = self._lookup(container_id)
        if state is None:
            return False
        state.reset()
        self._render(container_id)
        return True

    def click(self, element: Tag) -> bool:
        """Dispatch a click on a rendered control, as a browser would."""
        if element.has_attr('disabled'):
            return False
        action = element.get(ACTION_ATTR)
        el = element.find_parent(class_='quiz-container')
        if not action or el is None or not el.get('id'):
            return False
        container_id = el['id']
        if action == 'select':
            question = element.get('data-quiz-question')
            try:
                index = int(question) if question is not None else None
            except ValueError:
                logging.debug(f"Ignoring click with question index {question!r} in {container_id}")
                return False
            return self.select(container_id, element.get('data-quiz-label', ''), index)
        if action == 'confirm':
            return self.confirm(container_id)
        if action == 'advance':
            return self.advance(container_id)
        if action == 'restart':
            return self.restart(container_id)
        logging.debug(f"Unknown quiz action {action!r}")
        return False
