from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

# Opaque identifiers supplied by the caller. Transaction ids only need a
# total order so grouping output is deterministic.
DataItem = str
TransactionId = str


class OperationType(Enum):
    """
    Enumeration of the actions a transaction can issue in a schedule.

    READ: Transaction reads a data item
    WRITE: Transaction writes a data item
    COMMIT: Transaction commits
    ABORT: Transaction aborts
    """
    READ = "R"
    WRITE = "W"
    COMMIT = "C"
    ABORT = "A"


@dataclass(frozen=True)
class Operation:
    """
    A single action in a schedule, tagged with its issuing transaction.

    Only READ and WRITE operations carry a data item; COMMIT and ABORT
    never touch data. Instances are immutable and compare structurally.
    """

    type: OperationType
    tid: TransactionId
    item: Optional[DataItem] = None

    def __post_init__(self):
        """
        Check that the data item matches the operation type.

        Raises:
            ValueError: If a read/write lacks an item, or a commit/abort has one
        """
        if self.accesses_data and self.item is None:
            raise ValueError(f"{self.type.name} operation requires a data item")
        if not self.accesses_data and self.item is not None:
            raise ValueError(f"{self.type.name} operation cannot carry a data item")

    @classmethod
    def read(cls, tid: TransactionId, item: DataItem) -> "Operation":
        return cls(OperationType.READ, tid, item)

    @classmethod
    def write(cls, tid: TransactionId, item: DataItem) -> "Operation":
        return cls(OperationType.WRITE, tid, item)

    @classmethod
    def commit(cls, tid: TransactionId) -> "Operation":
        return cls(OperationType.COMMIT, tid)

    @classmethod
    def abort(cls, tid: TransactionId) -> "Operation":
        return cls(OperationType.ABORT, tid)

    @property
    def accesses_data(self) -> bool:
        return self.type in (OperationType.READ, OperationType.WRITE)

    @property
    def is_write(self) -> bool:
        return self.type == OperationType.WRITE

    def __str__(self) -> str:
        if self.accesses_data:
            return f"{self.type.value}_{self.tid}({self.item})"
        return f"{self.type.value}_{self.tid}"


@dataclass(frozen=True)
class Transaction:
    """
    The operations of one transaction, in the order they appear in a schedule.

    Transactions are derived views produced by Schedule.transactions();
    the schedule remains the single source of truth.
    """

    tid: TransactionId
    operations: Tuple[Operation, ...]

    def __str__(self) -> str:
        parts = ", ".join(str(op) for op in self.operations)
        return f"Transaction '{self.tid}': [{parts}]"


@dataclass(frozen=True)
class OperationPair:
    """
    Two operations taken from distinct positions of the same schedule.

    `first` is the operation that appears earlier in the schedule. The
    conflict test itself does not depend on that order.
    """

    first: Operation
    second: Operation

    def is_conflicting(self) -> bool:
        """
        Decide whether the two operations conflict.

        Two operations conflict when they belong to different transactions,
        access the same data item, and at least one of them is a write.

        Returns:
            True if the pair conflicts, False otherwise

        Side effects:
            None
        """
        return (
            self.are_different_transactions()
            and self.on_same_data()
            and self.one_is_a_write()
        )

    def are_different_transactions(self) -> bool:
        return self.first.tid != self.second.tid

    def on_same_data(self) -> bool:
        # Commits and aborts carry no item and never share data with anything
        if not (self.first.accesses_data and self.second.accesses_data):
            return False
        return self.first.item == self.second.item

    def one_is_a_write(self) -> bool:
        return self.first.is_write or self.second.is_write

    @property
    def conflict_type(self) -> Optional[str]:
        """
        Name the kind of conflict in schedule order, e.g. "read-write".

        Returns:
            "read-write", "write-read" or "write-write", or None if the
            pair does not conflict
        """
        if not self.is_conflicting():
            return None
        return f"{self.first.type.name.lower()}-{self.second.type.name.lower()}"

    def __iter__(self) -> Iterator[Operation]:
        return iter((self.first, self.second))

    def __str__(self) -> str:
        return f"({self.first}, {self.second})"


def conflicts(a: Operation, b: Operation) -> bool:
    """Return True if operations `a` and `b` conflict. Symmetric in its arguments."""
    return OperationPair(a, b).is_conflicting()


def format_pairs(pairs: Iterable[OperationPair]) -> str:
    """Render a sequence of pairs as `[(<op>, <op>), ...]`."""
    return "[" + ", ".join(str(pair) for pair in pairs) + "]"


class Schedule:
    """
    An ordered, read-only sequence of operations from interleaved transactions.

    The order of operations represents their wall-clock interleaving and is
    preserved verbatim. The schedule does not check that transactions are
    well formed (e.g. that each ends in exactly one commit or abort).
    All queries are pure and recomputed on each call, so a schedule can be
    shared freely between threads.
    """

    def __init__(self, operations: Iterable[Operation]):
        """
        Create a schedule from an ordered collection of operations.

        Args:
            operations: Operations in the order they were issued

        Side effects:
            - Copies the operations into an immutable tuple
        """
        self._operations: Tuple[Operation, ...] = tuple(operations)

    @property
    def operations(self) -> Tuple[Operation, ...]:
        return self._operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Schedule):
            return NotImplemented
        return self._operations == other._operations

    def __hash__(self) -> int:
        return hash(self._operations)

    def __repr__(self) -> str:
        return f"Schedule({list(self._operations)!r})"

    def __str__(self) -> str:
        return "[" + ", ".join(str(op) for op in self._operations) + "]"

    def transactions(self) -> List[Transaction]:
        """
        Group the schedule's operations by transaction.

        Scans the schedule once, appending each operation to the list kept
        for its transaction id. Transactions are returned sorted by id rather
        than by first appearance so reports are reproducible regardless of
        interleaving.

        Returns:
            List of Transaction objects in ascending transaction id order,
            each holding its operations in schedule order

        Side effects:
            None
        """
        grouped: Dict[TransactionId, List[Operation]] = {}
        for op in self._operations:
            grouped.setdefault(op.tid, []).append(op)

        return [
            Transaction(tid, tuple(ops)) for tid, ops in sorted(grouped.items())
        ]

    def pairs(self) -> Iterator[OperationPair]:
        """
        Yield every pair of operations at distinct positions (i, j) with i < j.

        Identical operations at different positions still form a pair.
        A schedule of n operations yields exactly n * (n - 1) / 2 pairs.
        """
        for first, second in combinations(self._operations, 2):
            yield OperationPair(first, second)

    def conflicting_pairs(self) -> List[OperationPair]:
        """
        Find all conflicting pairs of operations in the schedule.

        Checks every positional pair, so this is quadratic in the schedule
        length. Pairs are returned in scan order and are not de-duplicated.

        Returns:
            List of conflicting OperationPair objects

        Side effects:
            None
        """
        return [pair for pair in self.pairs() if pair.is_conflicting()]
