from __future__ import annotations

from typing import Any, Callable
from unittest.mock import MagicMock

import pytest
import requests


def _make_response(
    status: int = 200, payload: Any = None, *, invalid_json: bool = False
) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    if invalid_json:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1")
    else:
        response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """Factory for fake ``requests.Response`` objects."""
    return _make_response


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep user/local config files and COSMOSCOPE_ env vars out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("COSMOSCOPE_CONFIG", raising=False)
