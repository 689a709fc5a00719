from typing import Iterable, List
from abicat.contracts.contract import ContractRecord
from abicat.core import Core

CONTRACT_COLUMNS = "chain, address, name, abi, label, src, updated_at"


class ContractsRepo(Core):
    """
    Reading and writing :class:`ContractRecord` to database.
    """

    def find(self, chain: str, address: str) -> ContractRecord | None:
        """
        Find a :class:`ContractRecord`.

        Args:
            chain: chain name
            address: contract address

        Returns:
            An instance of :class:`ContractRecord` or ``None`` if not found
        """
        with self.lock:
            row = self.conn.execute(
                f"SELECT {CONTRACT_COLUMNS} FROM contracts WHERE chain = ? AND address = ?",
                (chain, address),
            ).fetchone()
        if not row:
            return None
        return ContractRecord.from_row(row)

    def find_many(self, chain: str, addresses: Iterable[str]) -> List[ContractRecord]:
        """
        Find all records for a set of addresses on a chain.

        Args:
            chain: chain name
            addresses: contract addresses

        Returns:
            A list of found records (addresses not in the database are skipped)
        """
        addresses = list(addresses)
        if len(addresses) == 0:
            return []
        statement = (
            f"SELECT {CONTRACT_COLUMNS} FROM contracts WHERE chain = ? "
            f"AND address IN ({','.join('?' * len(addresses))})"
        )
        with self.lock:
            rows = self.conn.execute(statement, [chain, *addresses]).fetchall()
        return [ContractRecord.from_row(r) for r in rows]

    def save(self, contracts: List[ContractRecord]):
        """
        Upsert records into the database.

        ``name``, ``abi``, ``src`` and ``updated_at`` of an existing
        record are overwritten, ``label`` is kept.

        Args:
            contracts: a list of :class:`ContractRecord` to save
        """
        rows = [c.to_row() for c in contracts]
        with self.lock:
            self.conn.executemany(
                f"INSERT INTO contracts({CONTRACT_COLUMNS}) VALUES(?,?,?,?,?,?,?) "
                "ON CONFLICT(chain, address) DO UPDATE SET "
                "name = excluded.name, abi = excluded.abi, src = excluded.src, "
                "updated_at = excluded.updated_at",
                rows,
            )

    def set_label(self, chain: str, address: str, label: str | None):
        """
        Set the free-text label of a contract, creating an empty record if
        the contract isn't in the database yet.

        Args:
            chain: chain name
            address: contract address
            label: new label (``None`` clears it)
        """
        with self.lock:
            self.conn.execute(
                "INSERT INTO contracts(chain, address, label) VALUES(?,?,?) "
                "ON CONFLICT(chain, address) DO UPDATE SET label = excluded.label",
                (chain, address, label),
            )

    def purge(self):
        """
        Clean all database entries
        """
        with self.lock:
            self.conn.execute("DELETE FROM contracts")
