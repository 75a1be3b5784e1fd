"""An exception that collects several errors."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class JointErrors(Exception):
    """A list of errors that can be raised as one."""

    def __init__(self, errors: Iterable[BaseException] = ()) -> None:
        super().__init__()
        self.errors: list[BaseException] = list(errors)

    def append(self, err: BaseException) -> None:
        """Add an error to the collection."""
        self.errors.append(err)

    def build(self) -> BaseException | None:
        """Return None, the single error, or this collection."""
        if not self.errors:
            return None
        if len(self.errors) == 1:
            return self.errors[0]
        return self

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self.errors)

    def __str__(self) -> str:
        parts = ["joint errors:"]
        parts.extend(f" #{i}: {err}" for i, err in enumerate(self.errors))
        return "".join(parts)