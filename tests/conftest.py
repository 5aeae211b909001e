"""Shared fixtures: static resources and a scripted stand-in for the VLM."""

import asyncio

import pytest

from insect_agent.knowledge.store import ClassIndex, KnowledgeStore


class FakeVLM:
    """Secondary model double. Returns `reply`, or raises `error`."""

    def __init__(self, reply="", error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []
        self.init_calls = 0
        self.cancelled = False

    async def ensure_initialized(self):
        self.init_calls += 1

    async def generate(self, prompt, image):
        self.calls.append((prompt, image))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_vlm():
    return FakeVLM()


@pytest.fixture
def class_index():
    return ClassIndex.from_mapping({"antlion": 3, "mantis": 7, "aphid": 11})


@pytest.fixture
def knowledge_store():
    return KnowledgeStore.from_mapping({
        "3": {"label": "antlion", "visual_knowledge": "Long slender abdomen, net-veined wings."},
        "7": {"label": "mantis", "visual_knowledge": "Raptorial forelegs, triangular head."},
        "11": {"label": "aphid", "visual_knowledge": "Tiny pear-shaped body, cornicles."},
    })


@pytest.fixture
def make_vlm():
    return FakeVLM
