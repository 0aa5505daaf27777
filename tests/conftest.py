# tests/conftest.py
import os
import sys

import pytest

# Ensure the project root (one level up from tests/) is on sys.path
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from datacleanse.models import Dataset  # noqa: E402


@pytest.fixture
def people():
    header = ["name", "email", "age"]
    rows = [
        {"name": "ada lovelace", "email": "ada@example.com", "age": "36"},
        {"name": "  alan   turing ", "email": "alan.example.com", "age": "41"},
        {"name": "grace hopper", "email": "grace@example.com", "age": "n/a"},
        {"name": "ada lovelace", "email": "ada@example.com", "age": "36"},
        {"name": "", "email": None, "age": ""},
    ]
    return Dataset(header=header, rows=rows)
