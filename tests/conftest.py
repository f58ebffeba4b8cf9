import itertools
import json

import pytest
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel

from iris_agent.state import SessionContext
from iris_analysis.shared.data_access import load_iris


@pytest.fixture
def iris():
    return load_iris()


@pytest.fixture
def context(iris):
    return SessionContext(primary=iris)


def scripted_model(*replies, repeat_last=False):
    """Fake chat model answering with ``replies`` in order (dicts are JSON-encoded)."""
    contents = [r if isinstance(r, str) else json.dumps(r) for r in replies]
    stream = itertools.chain(contents, itertools.repeat(contents[-1])) if repeat_last else iter(contents)
    return GenericFakeChatModel(messages=stream)


@pytest.fixture
def fake_model():
    return scripted_model
