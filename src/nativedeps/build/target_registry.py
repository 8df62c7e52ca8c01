"""
Target declarations for a configuration pass.

The registry records every target declared during one pass: imported static
archives, interface handles that bundle include paths and archives, external
libraries provided by the surrounding build, and consumer executables or
libraries described by a BuildDescriptor.

A consumer may only link handles that are already declared, which enforces
that a dependency is fully resolved before anything that needs it is
configured.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Literal, Tuple, Union

from ..errors import NativeDepsError, TargetConflictError, UndeclaredTargetError

TargetKind = Literal["executable", "library"]
TARGET_KINDS = ("executable", "library")


@dataclass(frozen=True)
class ImportedLibrary:
    """A pre-built static archive imported by absolute path."""

    name: str
    location: Path
    exclude_from_all: bool = True


@dataclass(frozen=True)
class ExternalLibrary:
    """A library provided by the surrounding build or the toolchain (e.g. pthread)."""

    name: str


@dataclass(frozen=True)
class InterfaceTarget:
    """A link handle with no sources of its own.

    Linking it propagates include_dirs and link_libraries to the consumer.
    """

    name: str
    include_dirs: Tuple[Path, ...] = ()
    link_libraries: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildDescriptor:
    """A consumer target whose sources are fixed at declaration time."""

    name: str
    kind: TargetKind
    sources: Tuple[str, ...]
    link_handles: Tuple[str, ...] = ()
    features: FrozenSet[str] = frozenset()
    definitions: Tuple[str, ...] = ()
    include_dirs: Tuple[Path, ...] = ()
    exclude_from_all: bool = False

    def __post_init__(self):
        if self.kind not in TARGET_KINDS:
            raise NativeDepsError(f"Unknown target kind '{self.kind}' for {self.name}")
        # Accept any sequence but store immutable tuples
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "link_handles", tuple(self.link_handles))
        object.__setattr__(self, "features", frozenset(self.features))
        object.__setattr__(self, "definitions", tuple(self.definitions))
        object.__setattr__(self, "include_dirs", tuple(self.include_dirs))


Target = Union[ImportedLibrary, ExternalLibrary, InterfaceTarget, BuildDescriptor]


@dataclass
class LinkInterface:
    """What a consumer receives transitively from the handles it links."""

    include_dirs: List[Path]
    archives: List[Path]
    libraries: List[str]


class TargetRegistry:
    """Holds the targets declared during one configuration pass."""

    def __init__(self):
        self._targets: Dict[str, Target] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._targets

    def __len__(self) -> int:
        return len(self._targets)

    def get(self, name: str) -> Target:
        """
        Get a declared target.

        Args:
            name: Target name

        Returns:
            The target

        Raises:
            UndeclaredTargetError: If nothing with that name is declared
        """
        if name not in self._targets:
            raise UndeclaredTargetError(f"Target '{name}' has not been declared")
        return self._targets[name]

    def declare(self, target: Target) -> Target:
        """
        Declare a target.

        Re-declaring an identical target is a no-op and returns the existing
        one; re-declaring a name with different contents is an error.

        Args:
            target: Target to declare

        Returns:
            The declared target

        Raises:
            TargetConflictError: If the name is taken by a different target
            UndeclaredTargetError: If a dependency has not been declared yet
        """
        existing = self._targets.get(target.name)
        if existing is not None:
            if existing == target:
                return existing
            raise TargetConflictError(
                f"Target '{target.name}' is already declared with different properties"
            )

        for dependency in self._dependencies_of(target):
            if dependency not in self._targets:
                raise UndeclaredTargetError(
                    f"Target '{target.name}' links '{dependency}', "
                    + "which must be declared first"
                )

        self._targets[target.name] = target
        return target

    def names(self) -> List[str]:
        """Target names in declaration order."""
        return list(self._targets)

    def default_targets(self) -> List[str]:
        """Buildable targets included in the default "build everything" set."""
        return [
            name
            for name, target in self._targets.items()
            if isinstance(target, BuildDescriptor) and not target.exclude_from_all
        ]

    def on_demand_targets(self, name: str) -> List[str]:
        """
        Targets excluded from the default set that building name pulls in.

        Args:
            name: Consumer target name

        Returns:
            Imported or excluded targets reachable from name, in link order
        """
        result = []
        for dependency in self._walk(name):
            target = self._targets[dependency]
            if getattr(target, "exclude_from_all", False) and dependency not in result:
                result.append(dependency)
        return result

    def link_closure(self, name: str) -> LinkInterface:
        """
        Compute include paths and link inputs a target receives.

        Args:
            name: Consumer or interface target name

        Returns:
            LinkInterface with de-duplicated, ordered entries
        """
        include_dirs: List[Path] = []
        archives: List[Path] = []
        libraries: List[str] = []

        for dependency in self._walk(name):
            target = self._targets[dependency]
            if isinstance(target, InterfaceTarget):
                for include_dir in target.include_dirs:
                    if include_dir not in include_dirs:
                        include_dirs.append(include_dir)
            elif isinstance(target, ImportedLibrary):
                if target.location not in archives:
                    archives.append(target.location)
            elif isinstance(target, ExternalLibrary):
                if target.name not in libraries:
                    libraries.append(target.name)
            elif isinstance(target, BuildDescriptor) and target.kind == "library":
                for include_dir in target.include_dirs:
                    if include_dir not in include_dirs:
                        include_dirs.append(include_dir)
                if target.name not in libraries:
                    libraries.append(target.name)

        return LinkInterface(include_dirs=include_dirs, archives=archives, libraries=libraries)

    def _walk(self, name: str) -> List[str]:
        """Depth-first dependencies of name, excluding name itself."""
        order: List[str] = []
        stack = list(reversed(self._dependencies_of(self.get(name))))
        while stack:
            current = stack.pop()
            if current in order:
                continue
            order.append(current)
            stack.extend(reversed(self._dependencies_of(self.get(current))))
        return order

    @staticmethod
    def _dependencies_of(target: Target) -> Tuple[str, ...]:
        if isinstance(target, InterfaceTarget):
            return target.link_libraries
        if isinstance(target, BuildDescriptor):
            return target.link_handles
        return ()
