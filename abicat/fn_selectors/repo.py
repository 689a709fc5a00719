from typing import List
from abicat.core import Core
from abicat.fn_selectors.fn_selector import FnSelector


class FnSelectorsRepo(Core):
    """
    Reading and writing :class:`FnSelector` to database.
    """

    def find(self, selector: str) -> List[FnSelector]:
        """
        Find all functions with a selector.

        Args:
            selector: normalized selector (``0x`` prefixed, lowercase)

        Returns:
            A list of found functions
        """
        with self.lock:
            rows = self.conn.execute(
                "SELECT selector, name, inputs, outputs FROM fn_selectors "
                "WHERE selector = ? ORDER BY name",
                (selector,),
            ).fetchall()
        return [FnSelector.from_row(r) for r in rows]

    def save(self, selectors: List[FnSelector]):
        """
        Save functions into the database, known ones are skipped.

        Args:
            selectors: a list of :class:`FnSelector` to save
        """
        rows = [s.to_row() for s in selectors]
        with self.lock:
            self.conn.executemany(
                "INSERT INTO fn_selectors VALUES(?,?,?,?) ON CONFLICT DO NOTHING", rows
            )

    def purge(self):
        """
        Clean all database entries
        """
        with self.lock:
            self.conn.execute("DELETE FROM fn_selectors")
