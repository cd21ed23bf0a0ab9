import math
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def compute_grade(score: int, total_questions: int) -> int:
    """Percentage grade, rounding halves up."""
    if total_questions <= 0:
        return 0
    return int(math.floor(score / total_questions * 100 + 0.5))


# --- Quiz content ---
class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    options: List[Option]
    correct_option_id: str

    @model_validator(mode="after")
    def check_options(self):
        ids = [option.id for option in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Question {self.id} has duplicate option ids")
        if ids.count(self.correct_option_id) != 1:
            raise ValueError(
                f"Question {self.id}: correct option {self.correct_option_id} "
                "does not match any option"
            )
        return self


class Quiz(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    questions: List[Question] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_question_ids(self):
        ids = [question.id for question in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("Quiz has duplicate question ids")
        return self

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


# --- Persisted records ---
class AttemptRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    username: str
    topic: str
    score: int = Field(ge=0)
    total_questions: int = Field(gt=0, alias="totalQuestions")
    timestamp: int

    @model_validator(mode="after")
    def check_score(self):
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed total_questions")
        return self

    @property
    def grade(self) -> int:
        return compute_grade(self.score, self.total_questions)


class HistoryDocument(BaseModel):
    version: int
    attempts: List[AttemptRecord] = Field(default_factory=list)


class UserIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    locked: bool = False


# --- Session ---
class Screen(str, Enum):
    AUTH = "auth"
    LOADING = "loading"
    QUIZ = "quiz"
    RESULTS = "results"


class SessionState(BaseModel):
    """Snapshot of the interactive session. Transitions return new snapshots."""

    model_config = ConfigDict(frozen=True)

    screen: Screen = Screen.AUTH
    quiz: Optional[Quiz] = None
    answers: Dict[str, str] = Field(default_factory=dict)
    identity: Optional[UserIdentity] = None
    loading_error: bool = False
    click_count: int = 0
    show_admin: bool = False
    last_result: Optional[AttemptRecord] = None

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def total_questions(self) -> int:
        return len(self.quiz.questions) if self.quiz else 0

    @property
    def can_submit(self) -> bool:
        return (
            self.screen == Screen.QUIZ
            and self.total_questions > 0
            and self.answered_count >= self.total_questions
        )

    @property
    def progress(self) -> float:
        if not self.total_questions:
            return 0.0
        return self.answered_count / self.total_questions


# --- Results view ---
class QuestionReview(BaseModel):
    question_id: str
    text: str
    selected_option_id: Optional[str]
    correct_option_id: str
    is_correct: bool


class ResultSummary(BaseModel):
    title: str
    score: int
    total_questions: int
    grade: int
    points_per_question: float
    review: List[QuestionReview]
