"""
Setup script for mathfeed.

mathfeed is an adaptive practice engine for secondary-school math. It
serves a continuous feed of exercises whose difficulty follows the
learner's answer streaks:

1. Buffered delivery - exercises are prefetched so the learner never waits
2. Difficulty adaptation - streaks of correct/wrong answers move the level
3. Offline fallback - local templates when the generator service is down

The 'mathfeed' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="mathfeed",
    version="1.0.0",
    description="Adaptive practice delivery engine for secondary-school math",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="mathfeed",
    packages=find_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
        # Math
        "sympy>=1.12",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mathfeed=src.delivery.feed_cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning math adaptive practice cli education",
)
