"""Captcha handling module.

This module provides image captcha recognition for the BTK lookup flow.

Main components:
- ICaptchaSolver: Base interface for captcha recognizers
- GeminiCaptchaSolver: Recognizer backed by the Google Gemini vision API
- normalize_code: Reduces recognizer output to a 5-6 character code
"""

# Base interface for captcha solver implementations
from .interfaces import ICaptchaSolver

# Concrete solver and output post-processing
from .solvers import GeminiCaptchaSolver, normalize_code

# Public API exports
__all__ = [
    "ICaptchaSolver",
    "GeminiCaptchaSolver",
    "normalize_code",
]
