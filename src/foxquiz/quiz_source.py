import glob
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List

import pandas as pd
from pydantic import ValidationError

from .models import Option, Question, Quiz

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("question_id", "question", "option_id", "option", "correct")
TRUE_FLAGS = {"true", "yes", "y", "1", "x"}


class QuizFetchError(Exception):
    """The quiz source could not supply a quiz for the requested topic."""


def is_correct_flag(value: Any) -> bool:
    """Reads a `correct` cell; blank cells mark a wrong option."""
    if pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in TRUE_FLAGS
    return bool(value)


# --- Strategy Pattern: Quiz Sources ---
class QuizSource(ABC):
    """Supplies quiz content for a topic.

    Callers must treat `fetch` as possibly slow and possibly failing.
    Failures are reported by raising QuizFetchError; nothing is retried.
    """

    @abstractmethod
    async def fetch(self, topic: str) -> Quiz:
        pass

    def get_topics(self) -> List[Dict[str, Any]]:
        return []


FOX_QUIZ = Quiz(
    title="The Great Fox Quiz",
    description=(
        "Test what you know about the cleverest and most cunning animal in "
        "nature! Can you score 100?"
    ),
    questions=[
        Question(
            id="q1",
            text="Which biological family does the fox belong to?",
            options=[
                Option(id="o1", text="Canidae (dog family)"),
                Option(id="o2", text="Felidae (cat family)"),
                Option(id="o3", text="Mustelidae (weasel family)"),
                Option(id="o4", text="Ursidae (bear family)"),
            ],
            correct_option_id="o1",
        ),
        Question(
            id="q2",
            text="What is the most widespread fox species in the world?",
            options=[
                Option(id="o1", text="Arctic fox"),
                Option(id="o2", text="Red fox"),
                Option(id="o3", text="Sand fox"),
                Option(id="o4", text="Grey fox"),
            ],
            correct_option_id="o2",
        ),
        Question(
            id="q3",
            text="What is the fox's bushy tail mainly used for?",
            options=[
                Option(id="o1", text="Cleaning its body"),
                Option(id="o2", text="Balance and keeping warm in winter"),
                Option(id="o3", text="Only to keep flies away"),
                Option(id="o4", text="Only to mark territory"),
            ],
            correct_option_id="o2",
        ),
        Question(
            id="q4",
            text="Which fox is known for its very large ears relative to its body?",
            options=[
                Option(id="o1", text="Arctic fox"),
                Option(id="o2", text="Blanford's fox"),
                Option(id="o3", text="Fennec fox"),
                Option(id="o4", text="Corsac fox"),
            ],
            correct_option_id="o3",
        ),
        Question(
            id="q5",
            text="What do foxes mainly eat?",
            options=[
                Option(id="o1", text="They are strictly vegetarian"),
                Option(id="o2", text="They are omnivores (prey as well as fruit)"),
                Option(id="o3", text="Only large game"),
                Option(id="o4", text="Only fish"),
            ],
            correct_option_id="o2",
        ),
    ],
)


class StaticQuizSource(QuizSource):
    """Returns the built-in fox quiz whatever the topic."""

    def __init__(self, topic: str = "foxes"):
        self.topic = topic

    async def fetch(self, topic: str) -> Quiz:
        return FOX_QUIZ

    def get_topics(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": self.topic,
                "name": self.topic.replace("_", " ").title(),
                "count": len(FOX_QUIZ.questions),
            }
        ]


class CsvQuizSource(QuizSource):
    """Loads one quiz per CSV file in a directory; the file name is the topic."""

    def __init__(self, directory: str):
        self.directory = directory
        self.frames: Dict[str, pd.DataFrame] = {}
        self.load_all()

    def load_all(self):
        self.frames = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")
            return

        csv_files = glob.glob(os.path.join(self.directory, "*.csv"))
        for file_path in csv_files:
            try:
                file_name = os.path.splitext(os.path.basename(file_path))[0]
                df = pd.read_csv(file_path, encoding="utf-8", dtype={"question_id": str, "option_id": str})
                if all(column in df.columns for column in CSV_COLUMNS):
                    self.frames[file_name] = df
                    logger.info(f"Loaded {df['question_id'].nunique()} questions from {file_name}")
                else:
                    logger.error(f"Skipping {file_name}: Missing columns.")
            except Exception as e:
                logger.error(f"Failed to load {file_path}: {e}")

    def get_topics(self) -> List[Dict[str, Any]]:
        topics = []
        for key, df in self.frames.items():
            display_name = key.replace("_", " ").title()
            topics.append(
                {"id": key, "name": display_name, "count": int(df["question_id"].nunique())}
            )
        topics.sort(key=lambda x: x["name"])
        return topics

    async def fetch(self, topic: str) -> Quiz:
        df = self.frames.get(topic)
        if df is None:
            raise QuizFetchError(f"Unknown topic: {topic}")

        questions = []
        for question_id, rows in df.groupby("question_id", sort=False):
            correct = rows[rows["correct"].map(is_correct_flag)]["option_id"].tolist()
            try:
                questions.append(
                    Question(
                        id=str(question_id),
                        text=str(rows["question"].iloc[0]),
                        options=[
                            Option(id=str(row["option_id"]), text=str(row["option"]))
                            for row in rows.to_dict("records")
                        ],
                        correct_option_id=str(correct[0]) if len(correct) == 1 else "",
                    )
                )
            except ValidationError as e:
                raise QuizFetchError(f"Invalid question {question_id} in {topic}: {e}") from e

        return Quiz(
            title=topic.replace("_", " ").title(),
            description="",
            questions=questions,
        )


class QuizSourceFactory:
    """Factory to select the configured quiz source."""

    @staticmethod
    def create(kind: str, topic: str = "foxes", directory: str = "quizzes") -> QuizSource:
        if kind == "csv":
            return CsvQuizSource(directory)
        if kind != "static":
            logger.warning(f"Unknown quiz source '{kind}', using static quiz.")
        return StaticQuizSource(topic)
