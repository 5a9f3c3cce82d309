"""
Shared fixtures: fake provider clients and temporary databases.
"""

import os
import tempfile
import shutil

import pytest

from agent_academy.core.catalog import DEFAULT_CATALOG, Provider
from agent_academy.core.gateway import ModelGateway
from agent_academy.core.token_counter import TokenUsage
from agent_academy.providers import Completion
from agent_academy.storage.repository import ProgressRepository, initialize_schema


class FakeProviderClient:
    """Records calls and returns a canned completion or raises."""

    def __init__(self, content="Hello from the model", input_tokens=150, output_tokens=300, error=None):
        self.content = content
        self.usage = TokenUsage(input_tokens, output_tokens)
        self.error = error
        self.calls = []

    def complete(self, model, prompt, system=None, max_tokens=None, temperature=None):
        self.calls.append({
            "model": model,
            "prompt": prompt,
            "system": system,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.error is not None:
            raise self.error
        return Completion(content=self.content, usage=self.usage)


@pytest.fixture
def fake_clients():
    return {
        Provider.ANTHROPIC: FakeProviderClient(),
        Provider.OPENAI: FakeProviderClient(),
        Provider.QWEN: FakeProviderClient(),
    }


@pytest.fixture
def gateway(fake_clients):
    return ModelGateway(DEFAULT_CATALOG, fake_clients)


@pytest.fixture
def db_path():
    temp_dir = tempfile.mkdtemp()
    path = os.path.join(temp_dir, "test.db")
    initialize_schema(path)
    yield path
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def repository(db_path):
    return ProgressRepository(db_path)
