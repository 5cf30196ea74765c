import sys
import argparse
import re
from typing import TextIO, Optional, List, Tuple
from tabulate import tabulate
from conflicts import Operation, Schedule, format_pairs


# Commands from the concurrency-control input format that do not describe
# schedule operations and are skipped.
IGNORED_COMMANDS = ("begin", "beginro", "dump", "fail", "recover")

COMMAND_PATTERN = re.compile(r"^(\w+)\s*\((.*)\)$")


def build_schedule(*specs: Tuple[str, ...]) -> Schedule:
    """
    Build a schedule from shorthand operation tuples.

    Supported shorthands:
        - ("r", item, tid): Read item in transaction tid
        - ("w", item, tid): Write item in transaction tid
        - ("c", tid): Commit transaction tid
        - ("a", tid): Abort transaction tid

    Args:
        specs: Shorthand tuples, in schedule order

    Returns:
        A Schedule containing the described operations

    Raises:
        ValueError: If a shorthand is not recognized
    """
    operations = []
    for spec in specs:
        kind, *args = spec
        kind = kind.lower()
        if kind == "r" and len(args) == 2:
            operations.append(Operation.read(args[1], args[0]))
        elif kind == "w" and len(args) == 2:
            operations.append(Operation.write(args[1], args[0]))
        elif kind == "c" and len(args) == 1:
            operations.append(Operation.commit(args[0]))
        elif kind == "a" and len(args) == 1:
            operations.append(Operation.abort(args[0]))
        else:
            raise ValueError(f"Invalid operation shorthand: {spec!r}")
    return Schedule(operations)


def conflict_table(schedule: Schedule) -> str:
    """
    Format the conflicting pairs of a schedule as a grid table.

    Args:
        schedule: The schedule to analyze

    Returns:
        The table as a string, or "No conflicting pairs" if there are none
    """
    pairs = schedule.conflicting_pairs()
    if not pairs:
        return "No conflicting pairs"

    headers = ["#", "First", "Second", "Item", "Type"]
    table_data = [
        [i, str(pair.first), str(pair.second), pair.first.item, pair.conflict_type]
        for i, pair in enumerate(pairs, start=1)
    ]
    return tabulate(table_data, headers=headers, tablefmt="grid")


def schedule_report(schedule: Schedule, table: bool = False) -> None:
    """
    Print the schedule, its transactions and its conflicting pairs.

    Args:
        schedule: The schedule to report on
        table: Also print the conflicting pairs as a grid table

    Returns:
        None

    Side effects:
        - Prints the report to stdout
    """
    print("Schedule:")
    print(f"\t{schedule}")
    print()

    print("Transactions:")
    for transaction in schedule.transactions():
        print(f"\t{transaction}")
    print()

    print("Conflicting Pairs:")
    print(f"\t{format_pairs(schedule.conflicting_pairs())}")

    if table:
        print()
        print(conflict_table(schedule))


class ScheduleReader:
    """
    Reads schedules written in the concurrency-control command format and
    reports the conflicts in each one.

    Input can hold several schedules separated by "// Test" markers; each is
    analyzed independently.
    """

    def __init__(self, table: bool = False):
        """
        Initialize the reader.

        Args:
            table: Print a conflict table after each report

        Side effects:
            - Starts with an empty list of pending operations
        """
        self.table = table
        self.operations: List[Operation] = []

    def parse_command(self, line: str) -> Optional[Operation]:
        """
        Parse a command line into an operation.

        Supported commands:
            - R(T1,x2): Read variable x2 in transaction T1
            - W(T1,x2) or W(T1,x2,100): Write variable x2 (value is ignored)
            - C(T1), commit(T1), end(T1): Commit transaction T1
            - A(T1), abort(T1): Abort transaction T1
            - begin(T1), beginRO(T1), dump(), fail(1), recover(1): Ignored

        Args:
            line: A string containing a single command

        Returns:
            The parsed Operation, or None if the line is empty, a comment,
            or a command that does not describe an operation

        Raises:
            ValueError: If the command is malformed or unknown
        """
        line = line.split("//")[0].strip()
        if not line or line.startswith("==="):
            return None

        match = COMMAND_PATTERN.match(line)
        if not match:
            raise ValueError("expected a command of the form NAME(ARGS)")

        op_type = match.group(1).lower()
        args = [arg.strip() for arg in match.group(2).split(",") if arg.strip()]

        if op_type in IGNORED_COMMANDS:
            return None

        if op_type == "r":
            if len(args) != 2:
                raise ValueError("read takes a transaction and a variable")
            return Operation.read(args[0], args[1])

        if op_type == "w":
            if len(args) not in (2, 3):
                raise ValueError("write takes a transaction, a variable and an optional value")
            return Operation.write(args[0], args[1])

        if op_type in ("c", "commit", "end"):
            if len(args) != 1:
                raise ValueError("commit takes a single transaction")
            return Operation.commit(args[0])

        if op_type in ("a", "abort"):
            if len(args) != 1:
                raise ValueError("abort takes a single transaction")
            return Operation.abort(args[0])

        raise ValueError(f"unknown command '{match.group(1)}'")

    def process_input(self, input_source: TextIO) -> None:
        """
        Read schedules from an input source and report on each of them.

        Lines are grouped into schedules separated by "// Test" markers.
        Input without any marker is treated as a single schedule.

        Args:
            input_source: A file-like object (file or stdin) containing commands

        Returns:
            None

        Side effects:
            - Prints test markers and one report per schedule to stdout
            - Prints an error message for every line that fails to parse
        """
        current_test = 0

        for line in input_source:
            line = line.strip()

            if line.startswith("// Test"):
                if self.operations:
                    self._report()
                    print()
                current_test += 1
                print(f"=== Test {current_test} ===")
                continue

            try:
                operation = self.parse_command(line)
            except ValueError as e:
                print(f"Error parsing command '{line}': {str(e)}")
                continue

            if operation is not None:
                self.operations.append(operation)

        if self.operations:
            self._report()

    def _report(self) -> None:
        schedule = Schedule(self.operations)
        self.operations = []
        schedule_report(schedule, table=self.table)


def parse_args(argv: Optional[List[str]] = None):
    """
    Parse command-line arguments for the conflict report.

    Returns:
        argparse.Namespace: Parsed arguments containing:
            - input_file: File object for reading commands, or None for stdin
            - demo: Whether to report the built-in example schedule
            - table: Whether to print conflict tables
    """
    parser = argparse.ArgumentParser(
        description="Report conflicting operation pairs in transaction schedules"
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        type=argparse.FileType("r"),
        default=None,
        help="Input file containing schedule commands (default: stdin)",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Report the built-in example schedule instead of reading input",
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Also print conflicting pairs as a table",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for the conflict report.

    Side effects:
        - Reads from file or stdin unless --demo is given
        - Prints reports to stdout
        - Closes input file if one was opened
    """
    args = parse_args(argv)

    if args.demo:
        schedule = build_schedule(("r", "a", "1"), ("w", "a", "2"), ("a", "2"), ("c", "1"))
        schedule_report(schedule, table=args.table)
        return

    input_source = args.input_file if args.input_file else sys.stdin
    ScheduleReader(table=args.table).process_input(input_source)

    if args.input_file:
        args.input_file.close()


if __name__ == "__main__":
    main()
