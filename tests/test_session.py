"""Tests for the classification session (primary + cascade, supersession)."""

import asyncio

import pytest

from insect_agent.errors import EmptyInputError
from insect_agent.stage.classify import CascadeOrchestrator
from insect_agent.stage.session import ClassificationSession
from insect_agent.vision.primary import StaticClassifier


class PerImageClassifier:
    """Primary double returning predictions keyed by image name."""

    def __init__(self, table):
        self.table = table

    def predict(self, image):
        return self.table[image]


class TestClassifyImage:

    @pytest.mark.asyncio
    async def test_runs_primary_then_cascade(self, make_vlm, class_index, knowledge_store):
        vlm = make_vlm(reply="mantis")
        orchestrator = CascadeOrchestrator(vlm, knowledge_store, class_index, tau=70.0, top_k=2)
        primary = StaticClassifier([("antlion", 60.0), ("mantis", 55.0), ("aphid", 10.0)])
        session = ClassificationSession(primary, orchestrator)

        result = await session.classify_image("bug.jpg")

        assert result.final_identifier == "mantis"
        assert session.latest is result
        assert session.generation == 1

    @pytest.mark.asyncio
    async def test_empty_predictions_raise(self, make_vlm):
        session = ClassificationSession(StaticClassifier([]), CascadeOrchestrator(make_vlm()))
        with pytest.raises(EmptyInputError):
            await session.classify_image("bug.jpg")

    @pytest.mark.asyncio
    async def test_update_tau_applies_to_next_request(self, make_vlm, class_index, knowledge_store):
        vlm = make_vlm(reply="mantis")
        orchestrator = CascadeOrchestrator(vlm, knowledge_store, class_index, tau=70.0, top_k=2)
        session = ClassificationSession(StaticClassifier({"antlion": 60.0, "mantis": 55.0}), orchestrator)

        session.update_tau(50.0)
        result = await session.classify_image("bug.jpg")

        assert result.used_secondary_model is False
        assert result.final_identifier == "antlion"


class TestSupersession:

    @pytest.mark.asyncio
    async def test_submit_cancels_in_flight_request(self, make_vlm, class_index, knowledge_store):
        slow = make_vlm(reply="mantis", delay=5.0)
        orchestrator = CascadeOrchestrator(slow, knowledge_store, class_index, tau=70.0, top_k=2)
        primary = PerImageClassifier({
            "first.jpg": [("antlion", 60.0), ("mantis", 55.0)],
            "second.jpg": [("aphid", 95.0)],
        })
        session = ClassificationSession(primary, orchestrator)

        first = session.submit("first.jpg")
        await asyncio.sleep(0.1)
        second = session.submit("second.jpg")

        result = await second
        with pytest.raises(asyncio.CancelledError):
            await first

        assert slow.cancelled is True
        assert result.final_identifier == "aphid"
        assert session.latest is result

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, make_vlm, class_index, knowledge_store):
        vlm = make_vlm(reply="mantis", delay=0.05)
        orchestrator = CascadeOrchestrator(vlm, knowledge_store, class_index, tau=70.0, top_k=2)
        primary = PerImageClassifier({
            "old.jpg": [("antlion", 60.0), ("mantis", 55.0)],
            "new.jpg": [("aphid", 95.0)],
        })
        session = ClassificationSession(primary, orchestrator)

        old = asyncio.create_task(session.classify_image("old.jpg"))
        await asyncio.sleep(0.01)
        newest = await session.classify_image("new.jpg")
        stale = await old

        assert stale is None
        assert session.latest is newest
        assert session.latest.final_identifier == "aphid"
