from typing import List
from hypothesis import given, settings, HealthCheck
from hypothesis.strategies import lists
from abicat.contracts.contract import ContractRecord
from abicat.contracts.repo import ContractsRepo
from contracts.strategies import contract_record


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(contracts=lists(contract_record(), max_size=10, unique_by=lambda c: (c.chain, c.address)))
def test_read_write(contracts: List[ContractRecord], contracts_repo: ContractsRepo):
    try:
        contracts_repo.save(contracts)
        for c in contracts:
            assert contracts_repo.find(c.chain, c.address) == c
    finally:
        contracts_repo.purge()
        contracts_repo.commit()


def test_find_many(contracts_repo: ContractsRepo):
    contracts = [
        ContractRecord("eth-mainnet", "0xaaa", "A"),
        ContractRecord("eth-mainnet", "0xbbb", "B"),
        ContractRecord("arb-mainnet", "0xaaa", "ArbA"),
    ]
    contracts_repo.save(contracts)
    contracts_repo.commit()

    found = contracts_repo.find_many("eth-mainnet", ["0xaaa", "0xccc"])
    assert found == [contracts[0]]
    found = contracts_repo.find_many("eth-mainnet", ["0xaaa", "0xbbb"])
    assert sorted(found, key=lambda c: c.address) == contracts[:2]
    assert contracts_repo.find_many("eth-mainnet", []) == []
    assert contracts_repo.find("arb-mainnet", "0xbbb") is None


def test_upsert_overwrites_fetched_fields_and_keeps_label(contracts_repo: ContractsRepo):
    contracts_repo.set_label("eth-mainnet", "0xaaa", "Treasury")
    contracts_repo.save([ContractRecord("eth-mainnet", "0xaaa", "Old", [], None, "v1", 100)])
    contracts_repo.save(
        [ContractRecord("eth-mainnet", "0xaaa", "New", [{"type": "fallback"}], None, "v2", 200)]
    )
    contracts_repo.commit()

    assert contracts_repo.find("eth-mainnet", "0xaaa") == ContractRecord(
        "eth-mainnet", "0xaaa", "New", [{"type": "fallback"}], "Treasury", "v2", 200
    )


def test_set_label_creates_empty_record(contracts_repo: ContractsRepo):
    contracts_repo.set_label("eth-mainnet", "0xaaa", "Seeded")
    contracts_repo.commit()
    assert contracts_repo.find("eth-mainnet", "0xaaa") == ContractRecord(
        "eth-mainnet", "0xaaa", label="Seeded"
    )

    contracts_repo.set_label("eth-mainnet", "0xaaa", None)
    assert contracts_repo.find("eth-mainnet", "0xaaa").label is None


def test_repos_share_connection(cache_path: str):
    first = ContractsRepo(cache_path=cache_path)
    second = ContractsRepo(cache_path=cache_path)
    assert first.conn is second.conn
    assert first.lock is second.lock
