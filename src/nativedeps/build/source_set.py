"""
Source set assembly for consumer targets.

A target's compilation units are its base sources followed by the optional
and alternative modules whose guards hold, in the order the modules were
declared. Declaration order, never flag evaluation order, decides where a
module lands, which keeps link order and static initialization order the
same across builds and platforms.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import ConfigError


@dataclass(frozen=True)
class FeatureFlags:
    """Opaque feature inputs that gate optional modules."""

    platform: str
    with_tls: bool = False
    coroutine_impl: str = "default"
    rocksdb_experimental: bool = False

    def is_enabled(self, flag: str) -> bool:
        """Check a boolean flag by name.

        Raises:
            ConfigError: If the flag is unknown or not boolean
        """
        value = getattr(self, flag, None)
        if not isinstance(value, bool):
            raise ConfigError(f"Unknown feature flag: {flag}")
        return value

    def enabled(self) -> FrozenSet[str]:
        """Names of boolean flags that are on."""
        return frozenset(
            name
            for name in ("with_tls", "rocksdb_experimental")
            if getattr(self, name)
        )


@dataclass(frozen=True)
class OptionalModule:
    """A source appended when its flag is on and the platform is compatible."""

    source: str
    flag: str
    excluded_platforms: Tuple[str, ...] = ()

    def applies(self, flags: FeatureFlags) -> bool:
        return flags.platform not in self.excluded_platforms and flags.is_enabled(flag=self.flag)


@dataclass(frozen=True)
class AlternativeModule:
    """Exactly one source chosen by the value of a selector flag."""

    selector: str
    choices: Mapping[str, str] = field(default_factory=dict)
    default: Optional[str] = None

    def choose(self, flags: FeatureFlags) -> Optional[str]:
        value = getattr(flags, self.selector, None)
        if value is None:
            raise ConfigError(f"Unknown feature selector: {self.selector}")
        return self.choices.get(value, self.default)


Module = Union[OptionalModule, AlternativeModule]


class SourceSetAssembler:
    """Computes ordered source lists from base sources and feature flags.

    Example usage:
        assembler = SourceSetAssembler([OptionalModule("BenchEncrypt.cpp", "with_tls", ("windows",))])
        sources = assembler.assemble(["flowbench.actor.cpp"], FeatureFlags(platform="linux", with_tls=True))
        # ['flowbench.actor.cpp', 'BenchEncrypt.cpp']
    """

    def __init__(self, modules: Sequence[Module] = ()):
        """
        Initialize assembler.

        Args:
            modules: Optional and alternative modules in declaration order
        """
        self.modules: Tuple[Module, ...] = tuple(modules)

    def assemble(self, base_sources: Sequence[str], flags: FeatureFlags) -> List[str]:
        """
        Compute the final source list.

        Args:
            base_sources: Sources that are always compiled, in order
            flags: Feature flags for this configuration

        Returns:
            base_sources followed by the selected modules in declaration order
        """
        sources = list(base_sources)
        seen = set(sources)

        for module in self.modules:
            if isinstance(module, OptionalModule):
                selected = module.source if module.applies(flags) else None
            else:
                selected = module.choose(flags)

            if selected and selected not in seen:
                sources.append(selected)
                seen.add(selected)

        return sources

    def selection(self, flags: FeatureFlags) -> Dict[str, bool]:
        """Report which optional modules a configuration selects (for summaries)."""
        report = {}
        for module in self.modules:
            if isinstance(module, OptionalModule):
                report[module.source] = module.applies(flags)
            else:
                chosen = module.choose(flags)
                for source in module.choices.values():
                    report[source] = source == chosen
        return report
