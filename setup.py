# setup.py
from setuptools import setup, find_packages

setup(
    name="docmunch",
    version="0.1.0",
    description="Convert documentation websites into AI-ready Markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),  # finds the docmunch package
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "markdownify>=0.13",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "trafilatura>=1.12",
    ],
    extras_require={
        # optional renderer for client-side rendered docs
        "browser": ["playwright>=1.40"],
        "test": ["pytest>=8.0", "pytest-asyncio>=0.23"],
    },
    entry_points={"console_scripts": ["docmunch=docmunch.cli:cli"]},
    python_requires=">=3.10",
)
