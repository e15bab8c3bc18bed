"""User-defined command aliases."""

from __future__ import annotations

import shlex

from .config import Config
from .exceptions import AliasError
from .models import AliasEntry

RESERVED_NAMES = frozenset({"help", "version", "alias", "config"})


class AliasManager:
    """Create, delete and expand aliases stored in :class:`Config`.

    ``builtin_commands`` lists top-level command names that aliases may not
    shadow, in addition to :data:`RESERVED_NAMES`.
    """

    def __init__(self, config: Config, builtin_commands: frozenset[str] | set[str] = frozenset()) -> None:
        self.config = config
        self.reserved = RESERVED_NAMES | set(builtin_commands)

    def list(self) -> dict[str, AliasEntry]:
        return dict(sorted(self.config.aliases.items()))

    def get(self, name: str) -> AliasEntry | None:
        return self.config.aliases.get(name)

    def set(self, name: str, expansion: str, shell: bool = False) -> AliasEntry:
        self.validate_name(name)
        if not expansion.strip():
            raise AliasError("Alias expansion cannot be empty")
        entry = AliasEntry(expansion=expansion.strip(), shell=shell)
        if not shell:
            cycle = self._find_cycle(name, entry)
            if cycle:
                raise AliasError(f"Alias would create a circular reference: {' -> '.join(cycle)}")
        self.config.aliases[name] = entry
        return entry

    def delete(self, name: str) -> bool:
        return self.config.aliases.pop(name, None) is not None

    def validate_name(self, name: str) -> None:
        if not name:
            raise AliasError("Alias name cannot be empty")
        if any(char.isspace() for char in name):
            raise AliasError("Alias name cannot contain whitespace")
        if name.startswith("-"):
            raise AliasError("Alias name cannot start with '-'")
        if name in self.reserved:
            raise AliasError(f"Cannot create alias for reserved command: {name}")

    def expand_args(self, args: list[str]) -> tuple[list[str], bool]:
        """Expand the first argument if it names an alias.

        Returns the new argument list and whether it must run through a shell.
        Command aliases are expanded repeatedly through chains of aliases and
        the remaining arguments are appended. A shell alias becomes an
        ``sh -c`` invocation whose positional parameters are the remaining
        arguments.
        """

        if not args:
            return list(args), False
        rest = list(args[1:])
        head = args[0]
        seen: list[str] = []
        words = [head]
        while words and words[0] in self.config.aliases:
            name = words[0]
            if name in seen:
                raise AliasError(f"Alias expansion loops: {' -> '.join(seen + [name])}")
            seen.append(name)
            entry = self.config.aliases[name]
            if entry.shell:
                return ["sh", "-c", entry.expansion, name, *words[1:], *rest], True
            words = self._split(entry.expansion) + words[1:]
        return words + rest, False

    def _find_cycle(self, name: str, entry: AliasEntry) -> list[str] | None:
        aliases = dict(self.config.aliases)
        aliases[name] = entry
        path = [name]
        current = entry
        while True:
            words = self._split(current.expansion)
            if not words:
                return None
            target = words[0]
            if target in path:
                return path + [target]
            nxt = aliases.get(target)
            if nxt is None or nxt.shell:
                return None
            path.append(target)
            current = nxt

    @staticmethod
    def _split(expansion: str) -> list[str]:
        try:
            return shlex.split(expansion)
        except ValueError as exc:
            raise AliasError(f"Unable to parse alias expansion '{expansion}': {exc}") from exc


__all__ = ["RESERVED_NAMES", "AliasManager"]
