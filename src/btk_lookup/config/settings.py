"""Application configuration.

All tunables live in one immutable ``LookupConfig`` built once at process
start by ``load_app_config``. Values come from the process environment,
falling back to a ``.env`` file; components receive the config object and
never read the environment themselves.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import dotenv_values

from btk_lookup.errors import ConfigurationError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_CAPTCHA_PROMPT = (
    "This image is a CAPTCHA. Read the characters in it exactly.\n"
    "Rules:\n"
    "- Reply with ONLY the characters you see, nothing else\n"
    "- Keep upper and lower case exactly as shown (case-sensitive)\n"
    "- The code has 5 or 6 characters\n"
    "- Examples: zQsmR or A8kN2P"
)


@dataclass(frozen=True)
class LookupConfig:
    """Configuration for the BTK lookup pipeline.

    Attributes:
        base_url: Root of the BTK "site sorgu" application (no trailing slash).
        captcha_path: Path of the CAPTCHA image below ``base_url``.
        user_agent: Browser user agent sent to the BTK site.
        gemini_api_key: Recognition service API key; required to run queries.
        gemini_model: Gemini model used to read the CAPTCHA.
        gemini_api_base: Base URL of the Gemini REST API.
        captcha_prompt: Instruction sent along with the CAPTCHA image.
        max_output_tokens: Output cap for the recognition request.
        max_retries: Attempts per domain before giving up.
        retry_delay: Seconds to wait before a retry.
        inter_query_delay: Seconds to wait between two domains.
        request_timeout: Per-request timeout in seconds.
        max_redirects: Redirect hops a GET request may follow.
        log_level: Minimum log level name.
    """
    base_url: str = "https://internet.btk.gov.tr/sitesorgu"
    captcha_path: str = "/secureimage/captcha.php"
    user_agent: str = DEFAULT_USER_AGENT
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    captcha_prompt: str = DEFAULT_CAPTCHA_PROMPT
    max_output_tokens: int = 256
    max_retries: int = 3
    retry_delay: float = 1.0
    inter_query_delay: float = 0.5
    request_timeout: float = 30.0
    max_redirects: int = 5
    log_level: str = "INFO"

    def __post_init__(self):
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1")
        if self.max_redirects < 0:
            raise ConfigurationError("max_redirects cannot be negative")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.retry_delay < 0 or self.inter_query_delay < 0:
            raise ConfigurationError("delays cannot be negative")

    @property
    def site_origin(self) -> str:
        """Scheme and host of ``base_url``, used for the Origin header."""
        scheme, _, rest = self.base_url.partition("://")
        return f"{scheme}://{rest.split('/', 1)[0]}"

    @property
    def root_url(self) -> str:
        return f"{self.base_url}/"

    @property
    def captcha_url(self) -> str:
        return f"{self.base_url}{self.captcha_path}"

    def require_api_key(self) -> str:
        """Return the recognition API key or raise if it is not configured."""
        if not self.gemini_api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set. Create one at "
                "https://aistudio.google.com/app/apikey and put it in .env or the environment."
            )
        return self.gemini_api_key


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def load_app_config(
    env_file: Union[str, Path, None] = ".env",
    environ: Optional[Mapping[str, str]] = None,
) -> LookupConfig:
    """Build the configuration from the environment and an optional .env file.

    Variables already present in the environment win over the file, so a
    shell ``export`` always overrides what is checked into ``.env``.

    Args:
        env_file: Path of the dotenv file; missing files are ignored.
        environ: Environment mapping, ``os.environ`` when not given.

    Returns:
        The merged, validated configuration.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed or a
            value is out of range.
    """
    values = {}
    if env_file and Path(env_file).is_file():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update({k: v for k, v in (os.environ if environ is None else environ).items() if v})

    kwargs = {}
    string_fields = {
        "BTK_BASE_URL": "base_url",
        "USER_AGENT": "user_agent",
        "GEMINI_API_KEY": "gemini_api_key",
        "GEMINI_MODEL": "gemini_model",
        "LOG_LEVEL": "log_level",
    }
    for env_name, field_name in string_fields.items():
        if values.get(env_name):
            kwargs[field_name] = values[env_name].strip()

    if "base_url" in kwargs:
        kwargs["base_url"] = kwargs["base_url"].rstrip("/")

    if values.get("BTK_MAX_RETRIES"):
        kwargs["max_retries"] = _parse_int("BTK_MAX_RETRIES", values["BTK_MAX_RETRIES"])
    if values.get("BTK_RETRY_DELAY"):
        kwargs["retry_delay"] = _parse_float("BTK_RETRY_DELAY", values["BTK_RETRY_DELAY"])
    if values.get("BTK_QUERY_DELAY"):
        kwargs["inter_query_delay"] = _parse_float("BTK_QUERY_DELAY", values["BTK_QUERY_DELAY"])
    if values.get("BTK_REQUEST_TIMEOUT"):
        kwargs["request_timeout"] = _parse_float("BTK_REQUEST_TIMEOUT", values["BTK_REQUEST_TIMEOUT"])

    return LookupConfig(**kwargs)
