import pytest
from unittest.mock import patch

from notio.app import (
    COMMANDS, SessionExitRequested, ask_performance, check_answer, cmd_learn, cmd_write,
    run_learn_session, run_write_session, session_prompt,
)
from notio.flashcards import get_cards
from notio.models import StudyCard
from notio.session import StaticTextGenerator
from notio.srs import Performance
from notio.studysets import create_study_set


@pytest.fixture
def study_set(tmp_db):
    return create_study_set(tmp_db, "Vokabeln", [("dog", "Hund"), ("cat", "Katze"), ("cow", "Kuh")])


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("notio.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("notio.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("notio.app.Prompt.ask", return_value="hello"):
        assert session_prompt("test prompt") == "hello"


def test_ask_performance_retries_invalid_answer():
    with patch("notio.app.Prompt.ask", side_effect=["perfect", " Easy "]):
        assert ask_performance() is Performance.EASY


def test_run_learn_session_records_every_card(tmp_db, study_set):
    answers = ["", "good", "", "again", "", "easy"]
    with patch("notio.app.Prompt.ask", side_effect=answers):
        reviewed = run_learn_session(tmp_db, study_set.id, StaticTextGenerator("Los geht's"))
    assert reviewed == 3
    cards = {c.term: c for c in get_cards(tmp_db, study_set.id)}
    assert cards["dog"].srs.repetitions == 1
    assert cards["cat"].srs.repetitions == 0
    assert cards["cow"].srs.ease_factor == 2.65


def test_run_learn_session_exits_on_q(tmp_db, study_set):
    """First card rated, 'q' on the second card's reveal prompt."""
    with patch("notio.app.Prompt.ask", side_effect=["", "good", "q"]):
        with pytest.raises(SessionExitRequested):
            run_learn_session(tmp_db, study_set.id)
    cards = get_cards(tmp_db, study_set.id)
    assert not cards[0].is_new
    assert cards[1].is_new
    assert cards[2].is_new


def test_second_session_starts_with_unseen_cards(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=["", "good", "q"]):
        with pytest.raises(SessionExitRequested):
            run_learn_session(tmp_db, study_set.id)
    prompts = []

    def answer(prompt, **kwargs):
        prompts.append(prompt)
        return "q"

    with patch("notio.app.Prompt.ask", side_effect=answer), \
            patch("notio.app.console.print") as printed:
        with pytest.raises(SessionExitRequested):
            run_learn_session(tmp_db, study_set.id)
    panels = [c.args[0] for c in printed.call_args_list if hasattr(c.args[0], "renderable")]
    assert panels[0].renderable == "cat"


def test_cmd_learn_handles_exit(tmp_db, study_set):
    with patch("notio.app.IntPrompt.ask", return_value=1), \
            patch("notio.app.Prompt.ask", side_effect=["", "q"]):
        cmd_learn(tmp_db)  # should not raise
    assert all(c.is_new for c in get_cards(tmp_db, study_set.id))


def test_check_answer_ignores_case_and_whitespace():
    card = StudyCard(id="c1", term="Photosynthese ", definition="Light to sugar")
    assert check_answer(card, "  photosynthese")
    assert check_answer(card, "PHOTOSYNTHESE")
    assert not check_answer(card, "Photosynthesis")
    assert not check_answer(card, "")


def test_run_write_session_counts_answers(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=[" DOG ", "bat", "cow", "n"]) as ask:
        assert run_write_session(tmp_db, study_set.id) == (2, 1)
    assert ask.call_args_list[-1].args[0] == "Retry the 1 incorrect cards?"


def test_run_write_session_shows_definitions(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=["dog", "cat", "cow"]), \
            patch("notio.app.console.print") as printed:
        run_write_session(tmp_db, study_set.id)
    panels = [c.args[0] for c in printed.call_args_list if c.args and hasattr(c.args[0], "renderable")]
    assert [p.renderable for p in panels] == ["Hund", "Katze", "Kuh"]


def test_run_write_session_retries_incorrect_cards(tmp_db, study_set):
    prompts = []
    answers = iter(["dog", "bat", "pig", "y", "cat", "sheep", "y", "cow"])

    def answer(prompt, **kwargs):
        prompts.append(prompt)
        return next(answers)

    with patch("notio.app.Prompt.ask", side_effect=answer), \
            patch("notio.app.console.print") as printed:
        result = run_write_session(tmp_db, study_set.id)
    assert result == (1, 2)
    assert prompts.count("Retry the 2 incorrect cards?") == 1
    assert prompts.count("Retry the 1 incorrect cards?") == 1
    panels = [c.args[0] for c in printed.call_args_list if c.args and hasattr(c.args[0], "renderable")]
    assert [p.renderable for p in panels] == ["Hund", "Katze", "Kuh", "Katze", "Kuh", "Kuh"]


def test_run_write_session_reprompts_blank_answer(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=["", "  ", "dog", "cat", "cow"]):
        assert run_write_session(tmp_db, study_set.id) == (3, 0)


def test_run_write_session_leaves_srs_untouched(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=["dog", "x", "cow", "n"]):
        run_write_session(tmp_db, study_set.id)
    assert all(c.is_new for c in get_cards(tmp_db, study_set.id))


def test_run_write_session_exits_on_q(tmp_db, study_set):
    with patch("notio.app.Prompt.ask", side_effect=["dog", "q"]):
        with pytest.raises(SessionExitRequested):
            run_write_session(tmp_db, study_set.id)


def test_run_write_session_empty_set(tmp_db):
    with patch("notio.app.Prompt.ask") as ask:
        assert run_write_session(tmp_db, "missing") == (0, 0)
    ask.assert_not_called()


def test_cmd_write_handles_exit(tmp_db, study_set):
    with patch("notio.app.IntPrompt.ask", return_value=1), \
            patch("notio.app.Prompt.ask", side_effect=["q"]):
        cmd_write(tmp_db)  # should not raise
    assert COMMANDS["write"] is cmd_write
