"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/nativedeps/nativedeps"
KEYWORDS = "jemalloc allocator native dependency build configuration benchmark cmake"
HERE = os.path.dirname(os.path.abspath(__file__))


with open(os.path.join(HERE, "README.md"), encoding="utf-8") as f:
    LONG_DESCRIPTION = f.read()


if __name__ == "__main__":
    setup(
        name="nativedeps",
        version="0.1.0",
        description="Resolve native dependencies and bootstrap benchmark targets at configuration time",
        long_description=LONG_DESCRIPTION,
        long_description_content_type="text/markdown",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "requests",
            "tqdm",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "nativedeps=nativedeps.cli:main",
            ],
        },
    )
