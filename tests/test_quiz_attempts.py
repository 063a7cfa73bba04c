import asyncio

import pytest

from app.core import errors
from app.quizzes.quiz_service import (
    get_quiz_for_play,
    list_student_quizzes,
    quiz_attempt_leaderboard,
    submit_attempt,
)

PERFECT = [
    {"question_index": 0, "selected_index": 0, "time_taken_sec": 0},
    {"question_index": 1, "selected_index": 1, "time_taken_sec": 0},
    {"question_index": 2, "selected_index": 0, "time_taken_sec": 0},
]

SLOW = [
    {"question_index": 0, "selected_index": 0, "time_taken_sec": 30},
    {"question_index": 1, "selected_index": 0, "time_taken_sec": 2},
    {"question_index": 2, "selected_index": 9, "time_taken_sec": 2},
]


@pytest.fixture
def quiz_db(db, sample_quiz):
    asyncio.run(db.quizzes.insert_one(sample_quiz))
    return db


def test_attempt_is_scored_stored_and_ranked(quiz_db, student):
    result = asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", PERFECT))

    assert result["correct_count"] == 3
    assert result["total_points"] == 300
    assert result["attempt_id"].startswith("ATT_")
    assert [a["points"] for a in result["answers"]] == [100, 100, 100]

    attempt = quiz_db.quiz_attempts.docs[0]
    assert attempt["quiz_id"] == "QUIZ_ALPHA"
    assert attempt["student_id"] == "S1"
    assert len(attempt["answers"]) == 3

    log = quiz_db.leaderboard_scores.docs
    assert len(log) == 1
    assert log[0]["type"] == "quiz"
    assert log[0]["item_ref"] == "quiz:QUIZ_ALPHA"
    assert log[0]["points"] == 300
    assert log[0]["meta"] == {"correct_count": 3, "total": 3}

    best = quiz_db.leaderboard_best.docs[0]
    assert best["best_points"] == 300
    assert best["teacher_id"] == "T1"


def test_out_of_range_selection_does_not_block_other_questions(quiz_db, student):
    result = asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", SLOW))

    assert [a["selected_index"] for a in result["answers"]] == [0, 0, -1]
    assert [a["points"] for a in result["answers"]] == [1, 0, 0]
    assert result["correct_count"] == 1
    assert result["total_points"] == 1


def test_attempts_cap_rejects_without_writing(quiz_db, student):
    s1 = student("S1")
    asyncio.run(submit_attempt(quiz_db, s1, "QUIZ_ALPHA", SLOW))
    asyncio.run(submit_attempt(quiz_db, s1, "QUIZ_ALPHA", PERFECT))

    with pytest.raises(errors.LimitExceededError) as exc:
        asyncio.run(submit_attempt(quiz_db, s1, "QUIZ_ALPHA", PERFECT))

    assert exc.value.detail == "Attempts limit reached"
    assert len(quiz_db.quiz_attempts.docs) == 2
    assert len(quiz_db.leaderboard_scores.docs) == 2
    assert quiz_db.leaderboard_best.docs[0]["best_points"] == 300


def test_answer_count_mismatch_is_rejected_whole(quiz_db, student):
    with pytest.raises(errors.ValidationError):
        asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", PERFECT[:2]))

    assert quiz_db.quiz_attempts.docs == []
    assert quiz_db.leaderboard_scores.docs == []


def test_quiz_from_other_class_is_not_found(quiz_db, student):
    with pytest.raises(errors.NotFoundError):
        asyncio.run(submit_attempt(quiz_db, student("S4"), "QUIZ_ALPHA", PERFECT))


def test_unpublished_quiz_is_not_playable(quiz_db, student):
    quiz_db.quizzes.docs[0]["published"] = False

    with pytest.raises(errors.NotFoundError):
        asyncio.run(get_quiz_for_play(quiz_db, student("S1"), "QUIZ_ALPHA"))


def test_student_without_class_cannot_attempt(quiz_db, student):
    with pytest.raises(errors.ScopeError):
        asyncio.run(submit_attempt(quiz_db, student("S5"), "QUIZ_ALPHA", PERFECT))


def test_play_view_hides_answers(quiz_db, student):
    asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", SLOW))

    quiz = asyncio.run(get_quiz_for_play(quiz_db, student("S1"), "QUIZ_ALPHA"))

    assert quiz["attempts_used"] == 1
    assert quiz["questions"][0] == {"text": "1 AND 0?", "options": ["0", "1"]}
    assert all("correct_index" not in q for q in quiz["questions"])


def test_student_quiz_list_summarizes_attempts(quiz_db, student):
    asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", SLOW))
    asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", PERFECT))

    quizzes = asyncio.run(list_student_quizzes(quiz_db, student("S1")))

    assert len(quizzes) == 1
    assert quizzes[0]["attempts_used"] == 2
    assert quizzes[0]["best_points"] == 300
    assert quizzes[0]["questions_count"] == 3

    others = asyncio.run(list_student_quizzes(quiz_db, student("S2")))
    assert others[0]["attempts_used"] == 0
    assert others[0]["best_points"] == 0


def test_teacher_attempt_board(quiz_db, student, teacher):
    asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", SLOW))
    asyncio.run(submit_attempt(quiz_db, student("S2"), "QUIZ_ALPHA", PERFECT))
    asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", PERFECT[:1] + SLOW[1:]))

    board = asyncio.run(quiz_attempt_leaderboard(quiz_db, teacher("T1"), "QUIZ_ALPHA"))

    assert [(r["rank"], r["student_id"], r["best_points"]) for r in board] == [
        (1, "S2", 300),
        (2, "S1", 100),
    ]
    assert board[0]["name"] == "Ben"
    assert board[1]["best_correct"] == 1


def test_other_teacher_cannot_see_attempt_board(quiz_db, teacher):
    with pytest.raises(errors.NotFoundError):
        asyncio.run(quiz_attempt_leaderboard(quiz_db, teacher("T2"), "QUIZ_ALPHA"))


def test_repeating_a_known_answer_is_rejected(quiz_db, student):
    known = PERFECT[0]

    with pytest.raises(errors.ValidationError):
        asyncio.run(submit_attempt(quiz_db, student("S1"), "QUIZ_ALPHA", [known, known, known]))

    assert quiz_db.quiz_attempts.docs == []
    assert quiz_db.leaderboard_best.docs == []
