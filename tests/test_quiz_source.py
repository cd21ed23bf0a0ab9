import asyncio

import pandas as pd
import pytest

from foxquiz.quiz_source import (
    FOX_QUIZ,
    CsvQuizSource,
    QuizFetchError,
    QuizSourceFactory,
    StaticQuizSource,
)


def write_quiz_csv(path, rows):
    pd.DataFrame(rows, columns=["question_id", "question", "option_id", "option", "correct"]).to_csv(
        path, index=False
    )


def test_static_source_returns_same_quiz():
    source = StaticQuizSource()
    first = asyncio.run(source.fetch("foxes"))
    second = asyncio.run(source.fetch("anything"))
    assert first == second == FOX_QUIZ
    assert source.get_topics() == [{"id": "foxes", "name": "Foxes", "count": 5}]


def test_csv_source_builds_quiz(tmp_path):
    write_quiz_csv(
        tmp_path / "night_animals.csv",
        [
            ["q1", "Which is nocturnal?", "a", "Owl", True],
            ["q1", "Which is nocturnal?", "b", "Eagle", False],
            ["q2", "Which hunts at dusk?", "a", "Robin", False],
            ["q2", "Which hunts at dusk?", "b", "Fox", True],
        ],
    )
    source = CsvQuizSource(str(tmp_path))

    quiz = asyncio.run(source.fetch("night_animals"))

    assert quiz.title == "Night Animals"
    assert [q.id for q in quiz.questions] == ["q1", "q2"]
    assert [q.correct_option_id for q in quiz.questions] == ["a", "b"]
    assert [o.text for o in quiz.questions[1].options] == ["Robin", "Fox"]
    assert source.get_topics() == [{"id": "night_animals", "name": "Night Animals", "count": 2}]


def test_csv_source_unknown_topic_fails(tmp_path):
    source = CsvQuizSource(str(tmp_path))
    with pytest.raises(QuizFetchError):
        asyncio.run(source.fetch("missing"))


def test_csv_source_rejects_question_without_single_answer(tmp_path):
    write_quiz_csv(
        tmp_path / "broken.csv",
        [
            ["q1", "Pick", "a", "One", True],
            ["q1", "Pick", "b", "Two", True],
        ],
    )
    source = CsvQuizSource(str(tmp_path))
    with pytest.raises(QuizFetchError):
        asyncio.run(source.fetch("broken"))


def test_csv_source_skips_files_with_missing_columns(tmp_path):
    pd.DataFrame({"word": ["Hund"], "translation": ["dog"]}).to_csv(tmp_path / "vocab.csv", index=False)
    source = CsvQuizSource(str(tmp_path))
    assert source.get_topics() == []


def test_csv_source_creates_missing_directory(tmp_path):
    directory = tmp_path / "quizzes"
    CsvQuizSource(str(directory))
    assert directory.exists()


def test_factory_selects_source(tmp_path):
    assert isinstance(QuizSourceFactory.create("static"), StaticQuizSource)
    assert isinstance(QuizSourceFactory.create("csv", directory=str(tmp_path)), CsvQuizSource)
    assert isinstance(QuizSourceFactory.create("ai"), StaticQuizSource)


def test_csv_source_treats_blank_cells_as_wrong(tmp_path):
    (tmp_path / "blanks.csv").write_text(
        "question_id,question,option_id,option,correct\n"
        "q1,Pick,a,One,1\n"
        "q1,Pick,b,Two,\n"
        "q2,Again,a,Three,\n"
        "q2,Again,b,Four,1\n",
        encoding="utf-8",
    )
    quiz = asyncio.run(CsvQuizSource(str(tmp_path)).fetch("blanks"))
    assert [q.correct_option_id for q in quiz.questions] == ["a", "b"]


def test_csv_source_reads_yes_no_flags(tmp_path):
    (tmp_path / "flags.csv").write_text(
        "question_id,question,option_id,option,correct\n"
        "q1,Pick,a,One,no\n"
        "q1,Pick,b,Two,Yes\n"
        "q1,Pick,c,Three,\n",
        encoding="utf-8",
    )
    quiz = asyncio.run(CsvQuizSource(str(tmp_path)).fetch("flags"))
    assert quiz.questions[0].correct_option_id == "b"
