"""Interfaces for the captcha system.

This module defines the interface that captcha recognizers implement. The
BTK form uses a classic image CAPTCHA, so a solver receives raw image bytes
and returns the text in it.
"""

from abc import ABC, abstractmethod


class ICaptchaSolver(ABC):
    """Interface for image captcha solvers.

    Implementations talk to an external recognition service. They must not
    alter the case of the recognized text: the BTK form compares the code
    case-sensitively.
    """

    @abstractmethod
    async def solve(self, image: bytes, api_key: str) -> str:
        """Read the code shown in a captcha image.

        Args:
            image: Raw image bytes (PNG as served by the site).
            api_key: Credential for the recognition service.

        Returns:
            The captcha code, 5 or 6 alphanumeric characters, case preserved.

        Raises:
            RecognitionError: Any subclass, when no usable code was produced.
        """
        pass
