"""nativedeps: native dependency resolution and benchmark bootstrapping.

Resolves the jemalloc allocator at build-configuration time (installed copy
first, verified source build as fallback), bootstraps the Google benchmark
framework through a nested cmake build, and assembles feature-gated source
lists for the targets that consume them.
"""

__version__ = "0.1.0"
