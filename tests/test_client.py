from __future__ import annotations

import asyncio
import time

import pytest
import requests

from meowscan import client as client_mod
from meowscan.config import MSG_NETWORK, MSG_SERVER_ERROR, MSG_TIMEOUT, PREDICT_URL
from meowscan.contracts import ErrorKind, ImageFile, ImageSelection, OperationFailure
from meowscan.io import PreviewHandle


class _FakeResp:
    def __init__(self, payload=None, status_code: int = 200, bad_json: bool = False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


def _selection() -> ImageSelection:
    file = ImageFile(filename="cat.jpg", media_type="image/jpeg", data=b"\xff\xd8fake-jpeg")
    # The client never touches the preview.
    return ImageSelection(file=file, preview=PreviewHandle("/nonexistent/preview.jpg"))


def _classify(**kwargs):
    return asyncio.run(client_mod.classify(_selection(), **kwargs))


def test_posts_single_multipart_file_part(monkeypatch):
    monkeypatch.delenv("MEOWSCAN_PREDICT_URL", raising=False)
    monkeypatch.delenv("MEOWSCAN_TIMEOUT_S", raising=False)
    calls = []

    def _fake_post(url, files=None, timeout=None, **kwargs):
        calls.append({"url": url, "files": files, "timeout": timeout, "kwargs": kwargs})
        return _FakeResp({"prediction": "Ringworm", "confidence": 0.92})

    monkeypatch.setattr(client_mod.requests, "post", _fake_post)

    result = _classify()

    assert result.prediction_label == "Ringworm"
    assert result.confidence == 0.92
    assert len(calls) == 1
    assert calls[0]["url"] == PREDICT_URL
    assert calls[0]["timeout"] == 30.0
    assert calls[0]["files"] == {"file": ("cat.jpg", b"\xff\xd8fake-jpeg", "image/jpeg")}
    assert "headers" not in calls[0]["kwargs"]


def test_env_overrides_endpoint_and_timeout(monkeypatch):
    monkeypatch.setenv("MEOWSCAN_PREDICT_URL", "http://localhost:7860/predict")
    monkeypatch.setenv("MEOWSCAN_TIMEOUT_S", "5")
    seen = {}

    def _fake_post(url, files=None, timeout=None):
        seen.update(url=url, timeout=timeout)
        return _FakeResp({"prediction": "Healthy", "confidence": 0.5})

    monkeypatch.setattr(client_mod.requests, "post", _fake_post)

    _classify()

    assert seen == {"url": "http://localhost:7860/predict", "timeout": 5.0}


def test_server_500_is_server_error(monkeypatch):
    monkeypatch.setattr(client_mod.requests, "post", lambda url, files=None, timeout=None: _FakeResp(status_code=500))

    with pytest.raises(OperationFailure) as exc_info:
        _classify()

    assert exc_info.value.kind == ErrorKind.SERVER_ERROR
    assert exc_info.value.error.message == MSG_SERVER_ERROR


@pytest.mark.parametrize("status_code", [400, 404, 502, 503])
def test_other_error_statuses_are_network_or_unknown(monkeypatch, status_code: int):
    monkeypatch.setattr(
        client_mod.requests, "post", lambda url, files=None, timeout=None: _FakeResp(status_code=status_code)
    )

    with pytest.raises(OperationFailure) as exc_info:
        _classify()

    assert exc_info.value.kind == ErrorKind.NETWORK_OR_UNKNOWN
    assert exc_info.value.error.message == MSG_NETWORK


@pytest.mark.parametrize(
    "exc",
    [
        requests.ConnectionError("Name or service not known"),
        requests.exceptions.InvalidURL("bad url"),
        requests.exceptions.ChunkedEncodingError("broken"),
    ],
)
def test_transport_failures_are_network_or_unknown(monkeypatch, exc):
    def _fake_post(url, files=None, timeout=None):
        raise exc

    monkeypatch.setattr(client_mod.requests, "post", _fake_post)

    with pytest.raises(OperationFailure) as exc_info:
        _classify()

    assert exc_info.value.kind == ErrorKind.NETWORK_OR_UNKNOWN
    # Raw transport text never reaches the user.
    assert str(exc) not in exc_info.value.error.message


def test_malformed_body_is_network_or_unknown(monkeypatch):
    monkeypatch.setattr(client_mod.requests, "post", lambda url, files=None, timeout=None: _FakeResp(bad_json=True))

    with pytest.raises(OperationFailure) as exc_info:
        _classify()

    assert exc_info.value.kind == ErrorKind.NETWORK_OR_UNKNOWN


def test_transport_timeout_is_timeout(monkeypatch):
    def _fake_post(url, files=None, timeout=None):
        raise requests.exceptions.ReadTimeout("read timed out")

    monkeypatch.setattr(client_mod.requests, "post", _fake_post)

    with pytest.raises(OperationFailure) as exc_info:
        _classify()

    assert exc_info.value.kind == ErrorKind.TIMEOUT
    assert exc_info.value.error.message == MSG_TIMEOUT


def test_hard_timeout_aborts_slow_request(monkeypatch):
    def _fake_post(url, files=None, timeout=None):
        time.sleep(0.5)
        return _FakeResp({"prediction": "Healthy", "confidence": 1.0})

    monkeypatch.setattr(client_mod.requests, "post", _fake_post)

    with pytest.raises(OperationFailure) as exc_info:
        _classify(timeout_s=0.05)

    assert exc_info.value.kind == ErrorKind.TIMEOUT


@pytest.mark.parametrize(
    "payload,label,confidence",
    [
        ({}, "", 0.0),
        ([], "", 0.0),
        ({"prediction": None, "confidence": "high"}, "", 0.0),
        ({"prediction": 3, "confidence": "0.7"}, "3", 0.7),
        ({"prediction": "Scabies", "confidence": 1.7}, "Scabies", 1.7),
        ({"prediction": "Scabies", "confidence": -0.1}, "Scabies", -0.1),
        ({"prediction": "Ringworm", "confidence": 10**400}, "Ringworm", 0.0),
    ],
)
def test_malformed_success_payloads_pass_through(monkeypatch, payload, label, confidence):
    monkeypatch.setattr(client_mod.requests, "post", lambda url, files=None, timeout=None: _FakeResp(payload))

    result = _classify()

    assert result.prediction_label == label
    assert result.confidence == confidence
