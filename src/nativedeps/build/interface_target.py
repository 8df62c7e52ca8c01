"""Interface target for a resolved native library.

declare_interface_target() is the single place that looks at how a library
was resolved. Whether it was found in the system or built from source, the
declared handle has the same shape: one include directory and one imported
archive per variant, in variant order. Consumers only ever link the handle.
"""

import logging
from typing import List

from ..errors import MissingByproduct
from ..packages.resolution import BuiltFromSource, Failed, FoundInSystem, Resolution
from .target_registry import ImportedLibrary, InterfaceTarget, TargetRegistry


def imported_name(handle: str, variant: str) -> str:
    """Name of the imported archive target for a variant (im_jemalloc, im_jemalloc_pic)."""
    if variant == "default":
        return f"im_{handle}"
    return f"im_{handle}_{variant}"


def declare_interface_target(
    registry: TargetRegistry, handle: str, resolution: Resolution
) -> InterfaceTarget:
    """Declare the link handle for a resolved library.

    Args:
        registry: Registry for this configuration pass
        handle: Handle name consumers link (e.g. 'jemalloc')
        resolution: Outcome of probe or source build

    Returns:
        The declared InterfaceTarget

    Raises:
        MissingByproduct: If a resolved artifact is missing or empty
        NativeDepsError: The carried reason, if resolution failed
    """
    if isinstance(resolution, Failed):
        raise resolution.reason

    if not isinstance(resolution, (FoundInSystem, BuiltFromSource)):
        raise TypeError(f"Unexpected resolution: {resolution!r}")

    unusable = [a.path for a in resolution.artifacts if not a.is_usable()]
    if not resolution.include_dir.is_dir():
        unusable.insert(0, resolution.include_dir)
    if unusable:
        raise MissingByproduct(resolution.library, resolution.kind, unusable)

    link_libraries: List[str] = []
    for artifact in resolution.artifacts:
        name = imported_name(handle, artifact.variant)
        registry.declare(ImportedLibrary(name=name, location=artifact.path))
        link_libraries.append(name)

    target = InterfaceTarget(
        name=handle,
        include_dirs=(resolution.include_dir,),
        link_libraries=tuple(link_libraries),
    )
    registry.declare(target)
    logging.info(f"Declared interface target {handle} ({resolution.kind})")
    return target


def declare_empty_interface(registry: TargetRegistry, handle: str) -> InterfaceTarget:
    """Declare a handle that contributes nothing, for platforms without the library."""
    target = InterfaceTarget(name=handle)
    registry.declare(target)
    logging.info(f"Declared empty interface target {handle}")
    return target
