"""
MDX-PDF Service - Markdown to PDF rendering service.

This service converts Markdown documents (with math, diagrams and extended
syntax) into paginated PDFs using markdown-it-py and Playwright/Chromium.
"""

__version__ = "0.5.0"
