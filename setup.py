"""
Setup script for the mdxpdf-service project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="mdxpdf-service",
    version="0.5.0",
    description="Markdown (math, diagrams, extended syntax) to PDF service using Playwright/Chromium",
    packages=find_packages(include=["mdxpdf_service", "mdxpdf_service.*"]),
    package_data={"mdxpdf_service": ["static/*.css"]},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.27",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "playwright>=1.40",
        "markdown-it-py[linkify]>=3.0",
        "mdit-py-plugins>=0.4",
        "emoji>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.25",
        ],
    },
    entry_points={
        "console_scripts": [
            "mdxpdf-service=mdxpdf_service.__main__:main",
        ],
    },
)
