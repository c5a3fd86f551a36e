import threading
from unittest.mock import MagicMock

import pytest

from src.chat.controller import (
    APOLOGY_TEXT,
    GREETING_TEXT,
    RESET_GREETING_TEXT,
    ChatController,
)
from src.enrichment.pipeline import block_title
from src.exceptions import RequestInFlightError
from src.survey.dataset import SURVEY_DATA, SimpleDataPoint, SurveyDataset


def _controller(generator, dataset=SURVEY_DATA):
    return ChatController(generator, lambda: dataset, conversation_id="C1:1.0")


def test_starts_with_greeting():
    controller = _controller(MagicMock())
    assert [m.text for m in controller.messages] == [GREETING_TEXT]
    assert not controller.loading


def test_send_appends_user_and_enriched_reply():
    generator = MagicMock(return_value="Analyse de la satisfaction.")
    controller = _controller(generator)

    reply = controller.send("  Que dit la Q7 ?  ")

    generator.assert_called_once_with("Que dit la Q7 ?", SURVEY_DATA)
    assert [m.role for m in controller.messages] == ["assistant", "user", "assistant"]
    assert controller.messages[1].text == "Que dit la Q7 ?"
    assert reply.message is controller.messages[-1]
    assert reply.index == 2
    assert reply.dataset is SURVEY_DATA
    assert reply.message.text.startswith("Analyse de la satisfaction.\n\n" + block_title("Q7"))
    assert reply.message.text.endswith("[[CHART:satisfaction]]")


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_input_is_ignored(text):
    generator = MagicMock()
    controller = _controller(generator)

    assert controller.send(text) is None
    generator.assert_not_called()
    assert len(controller.messages) == 1


def test_generator_failure_becomes_apology():
    generator = MagicMock(side_effect=RuntimeError("network down"))
    controller = _controller(generator)

    reply = controller.send("Q3")

    assert reply.message.text == APOLOGY_TEXT
    assert reply.dataset is SURVEY_DATA
    assert controller.messages[-1].text == APOLOGY_TEXT
    assert not controller.loading


def test_one_dataset_snapshot_per_request():
    first = SurveyDataset(zones=(SimpleDataPoint("A", 1),))
    second = SurveyDataset(zones=(SimpleDataPoint("B", 1),))
    provider = MagicMock(side_effect=[first, second])
    generator = MagicMock(return_value="ok")
    controller = ChatController(generator, provider)

    reply = controller.send("Q1")

    provider.assert_called_once()
    assert reply.dataset is first
    assert "| A | 1 | 100,0% |" in reply.message.text


def test_second_send_while_pending_is_rejected():
    started = threading.Event()
    release = threading.Event()

    def _slow_generator(prompt, dataset):
        started.set()
        release.wait(timeout=5)
        return "réponse"

    controller = _controller(_slow_generator)
    worker = threading.Thread(target=controller.send, args=("première question",))
    worker.start()
    assert started.wait(timeout=5)

    assert controller.loading
    with pytest.raises(RequestInFlightError):
        controller.send("deuxième question")

    release.set()
    worker.join(timeout=5)
    assert not controller.loading
    # the rejected question was not recorded
    assert [m.text for m in controller.messages if m.role == "user"] == ["première question"]


def test_copy_text_strips_chart_markers():
    controller = _controller(MagicMock(return_value="Texte [[CHART:zones]] fin"))
    reply = controller.send("Bonjour")

    assert reply.index == 2
    assert controller.copy_text(reply.index) == "Texte  fin"
    with pytest.raises(IndexError):
        controller.copy_text(10)


def test_reset_while_pending_keeps_reply_index_valid():
    started = threading.Event()
    release = threading.Event()

    def _slow_generator(prompt, dataset):
        started.set()
        release.wait(timeout=5)
        return "réponse"

    controller = _controller(_slow_generator)
    results = []
    worker = threading.Thread(target=lambda: results.append(controller.send("Bonjour")))
    worker.start()
    assert started.wait(timeout=5)

    controller.reset()
    release.set()
    worker.join(timeout=5)

    (reply,) = results
    assert reply.index == 1
    assert controller.messages[reply.index] is reply.message
    assert controller.messages[0].text == RESET_GREETING_TEXT


def test_reset_restores_single_greeting():
    controller = _controller(MagicMock(return_value="ok"))
    controller.send("Bonjour")
    controller.reset()
    assert [m.text for m in controller.messages] == [RESET_GREETING_TEXT]
