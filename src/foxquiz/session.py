"""
Session controller: screen state machine for auth -> quiz -> results.

Every transition replaces ``SessionController.state`` with a new immutable
``SessionState`` snapshot. Pure state transitions live in module-level
functions; the controller adds the side effects (quiz fetch, identity and
history persistence).
"""

import json
import logging
import time
from typing import Dict, List, Optional

from .config import settings
from .history import HistoryStore
from .identity import IdentityStore
from .models import (
    AttemptRecord,
    Quiz,
    QuestionReview,
    ResultSummary,
    Screen,
    SessionState,
    UserIdentity,
    compute_grade,
)
from .quiz_source import QuizFetchError, QuizSource

logger = logging.getLogger(__name__)


class TransitionError(Exception):
    """The requested operation is not valid on the current screen."""


# --- Scoring ---
def compute_score(quiz: Quiz, answers: Dict[str, str]) -> int:
    return sum(
        1 for question in quiz.questions if answers.get(question.id) == question.correct_option_id
    )


def build_summary(quiz: Quiz, answers: Dict[str, str]) -> ResultSummary:
    total = len(quiz.questions)
    score = compute_score(quiz, answers)
    review = [
        QuestionReview(
            question_id=question.id,
            text=question.text,
            selected_option_id=answers.get(question.id),
            correct_option_id=question.correct_option_id,
            is_correct=answers.get(question.id) == question.correct_option_id,
        )
        for question in quiz.questions
    ]
    return ResultSummary(
        title=quiz.title,
        score=score,
        total_questions=total,
        grade=compute_grade(score, total),
        points_per_question=100 / total if total else 0.0,
        review=review,
    )


# --- Pure transitions ---
def select_option(state: SessionState, question_id: str, option_id: str) -> SessionState:
    if state.screen != Screen.QUIZ or state.quiz is None:
        raise TransitionError("Answers can only be recorded during the quiz")
    question = state.quiz.get_question(question_id)
    if question is None:
        raise TransitionError(f"Unknown question: {question_id}")
    if option_id not in {option.id for option in question.options}:
        raise TransitionError(f"Unknown option {option_id} for question {question_id}")
    return state.model_copy(update={"answers": {**state.answers, question_id: option_id}})


def reset(state: SessionState) -> SessionState:
    if state.screen != Screen.RESULTS:
        raise TransitionError("Only a finished quiz can be reset")
    return state.model_copy(
        update={
            "screen": Screen.AUTH,
            "quiz": None,
            "answers": {},
            "last_result": None,
            "loading_error": False,
        }
    )


def register_title_click(state: SessionState, threshold: int) -> SessionState:
    count = state.click_count + 1
    if count >= threshold:
        return state.model_copy(update={"click_count": 0, "show_admin": True})
    return state.model_copy(update={"click_count": count})


class SessionController:
    def __init__(
        self,
        quiz_source: QuizSource,
        history: HistoryStore,
        identity_store: IdentityStore,
        topic: str = settings.DEFAULT_TOPIC,
        admin_threshold: int = settings.ADMIN_CLICK_THRESHOLD,
    ):
        self.quiz_source = quiz_source
        self.history = history
        self.identity_store = identity_store
        self.topic = topic
        self.admin_threshold = admin_threshold
        self.state = SessionState()

    def startup(self) -> SessionState:
        """Starts a fresh session, restoring a remembered username if present."""
        self.state = SessionState(identity=self.identity_store.load())
        return self.state

    async def start_quiz(self, username: Optional[str] = None) -> SessionState:
        state = self.state
        if state.screen == Screen.LOADING:
            logger.info("Quiz fetch already pending, ignoring start request")
            return state
        if state.screen != Screen.AUTH:
            raise TransitionError("A quiz can only be started from the auth screen")

        if state.identity is not None and state.identity.locked:
            identity = state.identity
        else:
            name = (username or "").strip()
            if not name:
                return state
            identity = UserIdentity(username=name, locked=False)

        self.state = state.model_copy(
            update={"screen": Screen.LOADING, "identity": identity, "loading_error": False}
        )

        try:
            quiz = await self.quiz_source.fetch(self.topic)
        except QuizFetchError as e:
            logger.error(f"Failed to fetch quiz for {self.topic}: {e}")
            quiz = None
        except Exception:
            logger.exception(f"Unexpected error fetching quiz for {self.topic}")
            quiz = None

        # A logout while the fetch was pending discards the late result.
        if self.state.screen != Screen.LOADING or self.state.identity != identity:
            logger.info("Session changed while the quiz was loading, discarding result")
            return self.state

        if quiz is None or not quiz.questions:
            self.state = self.state.model_copy(
                update={"screen": Screen.AUTH, "loading_error": True}
            )
            return self.state

        self.identity_store.save(identity.username)
        self.state = self.state.model_copy(
            update={"screen": Screen.QUIZ, "quiz": quiz, "answers": {}}
        )
        logger.info(f"Quiz started by {identity.username} [Topic: {self.topic}]")
        return self.state

    def select_option(self, question_id: str, option_id: str) -> SessionState:
        self.state = select_option(self.state, question_id, option_id)
        return self.state

    def submit(self) -> SessionState:
        state = self.state
        if not state.can_submit:
            logger.debug(
                f"Submission blocked: {state.answered_count}/{state.total_questions} answered"
            )
            return state

        record = AttemptRecord(
            username=state.identity.username if state.identity else "",
            topic=self.topic,
            score=compute_score(state.quiz, state.answers),
            total_questions=state.total_questions,
            timestamp=int(time.time() * 1000),
        )
        self.history.append(record)
        self.state = state.model_copy(update={"screen": Screen.RESULTS, "last_result": record})
        return self.state

    def result(self) -> ResultSummary:
        if self.state.screen != Screen.RESULTS or self.state.quiz is None:
            raise TransitionError("No finished quiz to show")
        return build_summary(self.state.quiz, self.state.answers)

    def reset(self) -> SessionState:
        self.state = reset(self.state)
        return self.state

    def logout(self) -> SessionState:
        self.identity_store.clear()
        self.state = self.state.model_copy(
            update={
                "screen": Screen.AUTH,
                "identity": None,
                "quiz": None,
                "answers": {},
                "last_result": None,
                "loading_error": False,
            }
        )
        logger.info("User logged out")
        return self.state

    # --- Admin view ---
    def register_title_click(self) -> SessionState:
        self.state = register_title_click(self.state, self.admin_threshold)
        return self.state

    def close_admin(self) -> SessionState:
        self.state = self.state.model_copy(update={"show_admin": False})
        return self.state

    def admin_history(self) -> List[dict]:
        return json.loads(self.history.to_frame().to_json(orient="records"))

    def clear_history(self, confirmed: bool) -> bool:
        if not confirmed:
            return False
        self.history.clear()
        return True
