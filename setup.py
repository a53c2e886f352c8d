#!/usr/bin/env python3
"""Setup script for the HX Compliance MCP Server."""

from setuptools import setup, find_namespace_packages
import os

# Read requirements from requirements.txt
def read_requirements():
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    try:
        with open(requirements_path, 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    except FileNotFoundError:
        return []

# Read long description from README
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    try:
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        return "MCP server for shell-and-tube exchanger rating and API 660 / TEMA / API 661 compliance"

setup(
    name="hx-compliance-mcp",
    version="1.0.0",
    description="MCP server for shell-and-tube exchanger rating and API 660 / TEMA / API 661 compliance",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    author="hvkshetry",
    author_email="hvkshetry@gmail.com",
    packages=find_namespace_packages(include=["exchanger", "exchanger.*", "tools", "utils"]),
    py_modules=["server"],
    include_package_data=True,
    install_requires=read_requirements(),
    extras_require={"test": ["pytest"]},
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    keywords="mcp heat-exchanger api-660 tema api-661 tube-vibration compressor",
)
