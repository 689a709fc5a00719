import json
from typing import Any, Dict, List
import pytest
import requests

from abicat.errors import SourceError
from abicat.etherscan.client import EtherscanClient, SourceContract
from fixtures.general import ERC20_ABI

API_URL = "https://etherscan.test/v2/api"


class ResponseMock:
    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("Expecting value")
        return self._body


class SessionMock:
    """
    Replays a single response and records the requests
    """

    requests: List[Dict[str, Any]]

    def __init__(self, response: ResponseMock | Exception):
        self.response = response
        self.requests = []

    def get(self, url: str, params: Dict[str, Any], timeout: float):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def verified(name: str = "Token", src: str = "contract Token {}") -> Dict[str, Any]:
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {"ContractName": name, "ABI": json.dumps(ERC20_ABI), "SourceCode": src}
        ],
    }


def client_for(response: ResponseMock | Exception, api_key: str | None = "key"):
    session = SessionMock(response)
    return EtherscanClient(api_key, API_URL, timeout=7, session=session), session


def test_fetch_verified_contract():
    client, session = client_for(ResponseMock(body=verified()))
    res = client.fetch(42161, "0xaaa")

    assert res == SourceContract("0xaaa", "Token", ERC20_ABI, "contract Token {}")
    assert session.requests == [
        {
            "url": API_URL,
            "params": {
                "chainid": 42161,
                "module": "contract",
                "action": "getsourcecode",
                "address": "0xaaa",
                "apikey": "key",
            },
            "timeout": 7,
        }
    ]


def test_fetch_unverified_contract():
    body = {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "ContractName": "",
                "ABI": "Contract source code not verified",
                "SourceCode": "",
            }
        ],
    }
    client, _ = client_for(ResponseMock(body=body))
    assert client.fetch(1, "0xaaa") == SourceContract("0xaaa", None, None, None)


def test_fetch_empty_result():
    client, _ = client_for(ResponseMock(body={"status": "1", "result": []}))
    assert client.fetch(1, "0xaaa") == SourceContract("0xaaa", None, None, None)


def test_etherscan_error_message():
    body = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
    client, _ = client_for(ResponseMock(body=body))
    with pytest.raises(SourceError, match="Invalid API Key"):
        client.fetch(1, "0xaaa")


def test_http_error():
    client, _ = client_for(ResponseMock(status_code=502, text="Bad Gateway"))
    with pytest.raises(SourceError) as err:
        client.fetch(1, "0xaaa")
    assert err.value.status == 502


def test_malformed_json():
    client, _ = client_for(ResponseMock(text="<html>"))
    with pytest.raises(SourceError, match="Malformed"):
        client.fetch(1, "0xaaa")


def test_missing_result():
    client, _ = client_for(ResponseMock(body={"status": "1"}))
    with pytest.raises(SourceError, match="Malformed"):
        client.fetch(1, "0xaaa")


def test_network_error():
    client, _ = client_for(requests.ConnectionError("connection refused"))
    with pytest.raises(SourceError, match="connection refused"):
        client.fetch(1, "0xaaa")


def test_missing_api_key():
    client, session = client_for(ResponseMock(body=verified()), api_key=None)
    with pytest.raises(SourceError):
        client.fetch(1, "0xaaa")
    assert session.requests == []
