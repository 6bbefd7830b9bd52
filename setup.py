#!/usr/bin/env python
"""mcp-bridge: MCP servers as tools, prompts and resources of an AI chat."""

from setuptools import find_packages, setup

VERSION = "0.3.0"
CLASSIFIERS = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "License :: OSI Approved :: MIT License",
]

DEPENDENCIES = [
    "knack>=0.11.0",
    "pyyaml>=6.0",
    "requests>=2.28.0",
    "rich>=13.0.0",
    # prompt_toolkit for selection menus and multi-line session input
    "prompt_toolkit>=3.0.0",
]

setup(
    name="mcp-bridge",
    version=VERSION,
    description="Expose MCP server tools, prompts and resources inside an AI chat session",
    long_description="Keeps a chat host's tool registry, prompt/resource menus and context in step with MCP servers.",
    license="MIT",
    author="mcp-bridge contributors",
    author_email="",
    classifiers=CLASSIFIERS,
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=DEPENDENCIES,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "mcp-bridge=mcp_bridge.__main__:main",
        ]
    },
)
