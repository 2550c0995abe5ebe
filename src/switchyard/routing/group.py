"""Route groups — nested prefix, middleware, name, and domain scopes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class GroupFrame:
    """Accumulated attributes of the enclosing groups.

    ``middleware`` is ordered outermost first: parent groups come before
    their children.
    """

    prefix: str = ""
    middleware: tuple[Any, ...] = ()
    name: str | None = None
    domain: str | None = None

    def merge(
        self,
        *,
        prefix: str | None = None,
        middleware: tuple[Any, ...] | list[Any] | None = None,
        name: str | None = None,
        domain: str | None = None,
    ) -> GroupFrame:
        """Return the frame of a child group declared inside this one.

        Prefixes concatenate parent-first; names dot-join when both are set;
        middleware appends after the parent's; a child domain overrides the
        parent's, otherwise the parent's is inherited.
        """
        merged_name = name
        if name is not None and self.name is not None:
            merged_name = f"{self.name}.{name}"
        elif name is None:
            merged_name = self.name
        return GroupFrame(
            prefix=self.prefix + prefix if prefix is not None else self.prefix,
            middleware=(*self.middleware, *(middleware or ())),
            name=merged_name,
            domain=domain if domain is not None else self.domain,
        )


_EMPTY_FRAME = GroupFrame()


class GroupStack:
    """Stack of merged group frames. Lives only while groups are open."""

    __slots__ = ("_frames",)

    def __init__(self) -> None:
        self._frames: list[GroupFrame] = []

    @property
    def current(self) -> GroupFrame:
        """Top frame, or an all-default frame when no group is open."""
        return self._frames[-1] if self._frames else _EMPTY_FRAME

    def enter(
        self,
        *,
        prefix: str | None = None,
        middleware: tuple[Any, ...] | list[Any] | None = None,
        name: str | None = None,
        domain: str | None = None,
    ) -> GroupFrame:
        """Merge the options onto the current frame and push the result."""
        frame = self.current.merge(
            prefix=prefix,
            middleware=middleware,
            name=name,
            domain=domain,
        )
        self._frames.append(frame)
        return frame

    def exit(self) -> None:
        """Pop the top frame. Popping an empty stack is a no-op."""
        if self._frames:
            self._frames.pop()

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)


class GroupScope:
    """Context manager that keeps a group open for the routes declared inside it."""

    __slots__ = ("_options", "_stack")

    def __init__(self, stack: GroupStack, **options: Any) -> None:
        self._stack = stack
        self._options = options

    def __enter__(self) -> GroupFrame:
        return self._stack.enter(**self._options)

    def __exit__(self, *exc_info: object) -> None:
        self._stack.exit()
