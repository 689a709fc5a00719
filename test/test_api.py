import sqlite3
from fastapi.testclient import TestClient
import pytest

from abicat.api import create_app
from abicat.contracts.contract import ContractRecord
from abicat.contracts.repo import ContractsRepo
from abicat.contracts.service import ContractsService
from abicat.fn_selectors.fn_selector import FnSelector
from abicat.fn_selectors.repo import FnSelectorsRepo
from abicat.jobs.dispatcher import FetchDispatcher
from fixtures.general import ERC20_ABI, START_TIME, TRANSFER_SELECTOR


@pytest.fixture
def client(contracts_service: ContractsService) -> TestClient:
    return TestClient(create_app(contracts_service, manage_service=False))


def drain(dispatcher: FetchDispatcher):
    dispatcher.stop()
    dispatcher.run()


def test_health_check(client: TestClient):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_submit_and_poll(client: TestClient, dispatcher: FetchDispatcher):
    res = client.post("/contracts", json={"chain": "eth-mainnet", "addrs": ["0xaaa"]})
    assert res.status_code == 200
    assert res.json() == {"contracts": [], "job_ids": ["eth-mainnet:0xaaa"]}

    res = client.post("/jobs", json={"job_ids": ["eth-mainnet:0xaaa"]})
    assert res.json()["eth-mainnet:0xaaa"]["status"] == "pending"

    drain(dispatcher)
    job = client.post("/jobs", json={"job_ids": ["eth-mainnet:0xaaa"]}).json()[
        "eth-mainnet:0xaaa"
    ]
    assert job["status"] == "complete"
    assert job["contract"]["name"] == "Token"
    assert job["contract"]["has_src"] is True
    assert "src" not in job["contract"]

    res = client.post("/contracts", json={"chain": "eth-mainnet", "addrs": ["0xaaa"]})
    assert res.json()["job_ids"] == []
    assert [c["address"] for c in res.json()["contracts"]] == ["0xaaa"]


def test_invalid_input(client: TestClient):
    res = client.post("/contracts", json={"chain": "", "addrs": ["0xaaa"]})
    assert res.status_code == 400
    assert res.json()["ok"] is False

    res = client.post("/contracts", json={"chain": "eth-mainnet", "addrs": []})
    assert res.status_code == 400

    res = client.post("/contracts", json={"chain": "no-such-chain", "addrs": ["0xaaa"]})
    assert res.status_code == 400
    assert "no-such-chain" in res.json()["error"]

    res = client.post("/jobs", json={"job_ids": []})
    assert res.status_code == 400


def test_malformed_body(client: TestClient):
    res = client.post("/contracts", json={"chain": "eth-mainnet"})
    assert res.status_code == 422


def test_payload_too_large(client: TestClient, dispatcher: FetchDispatcher):
    addrs = [f"0x{i:040x}" for i in range(1001)]
    res = client.post("/contracts", json={"chain": "eth-mainnet", "addrs": addrs})
    assert res.status_code == 413
    assert dispatcher.queue_size == 0

    res = client.post("/jobs", json={"job_ids": addrs})
    assert res.status_code == 413


def test_get_contract(client: TestClient, contracts_repo: ContractsRepo):
    assert client.get("/contracts/eth-mainnet/0xaaa").status_code == 404

    contracts_repo.save(
        [
            ContractRecord(
                "eth-mainnet", "0xaaa", "A", ERC20_ABI, src="contract A {}", updated_at=int(START_TIME)
            )
        ]
    )
    contracts_repo.commit()
    res = client.get("/contracts/eth-mainnet/0xaaa")
    assert res.status_code == 200
    assert res.json()["src"] == "contract A {}"
    assert res.json()["abi"] == ERC20_ABI


def test_put_label(client: TestClient, contracts_repo: ContractsRepo):
    res = client.put("/contracts/eth-mainnet/0xaaa/label", json={"label": "Treasury"})
    assert res.status_code == 200
    assert res.json()["label"] == "Treasury"
    assert "src" not in res.json()
    assert contracts_repo.find("eth-mainnet", "0xaaa").label == "Treasury"

    res = client.put("/contracts/eth-mainnet/0xaaa/label", json={})
    assert res.json()["label"] is None

    res = client.put("/contracts/no-such-chain/0xaaa/label", json={"label": "X"})
    assert res.status_code == 400
    assert contracts_repo.find("no-such-chain", "0xaaa") is None


def test_fn_selectors(client: TestClient, fn_selectors_repo: FnSelectorsRepo):
    fn_selectors_repo.save(FnSelector.from_abi(ERC20_ABI))
    fn_selectors_repo.commit()

    res = client.get(f"/fn-selectors/{TRANSFER_SELECTOR.upper()[2:]}")
    assert res.status_code == 200
    assert [s["name"] for s in res.json()] == ["transfer"]

    assert client.get("/fn-selectors/0xdeadbeef").json() == []
    assert client.get("/fn-selectors/0x1234").status_code == 400


def test_store_error(client: TestClient, contracts_repo: ContractsRepo, monkeypatch):
    def broken(*_):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(contracts_repo, "find_many", broken)
    monkeypatch.setattr(contracts_repo, "find", broken)

    res = client.post("/contracts", json={"chain": "eth-mainnet", "addrs": ["0xaaa"]})
    assert res.status_code == 500
    assert res.json() == {"ok": False, "error": "database error"}
    assert client.get("/contracts/eth-mainnet/0xaaa").status_code == 500
