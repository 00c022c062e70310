"""BTK Connector Package.

This package implements the connector for the BTK (Bilgi Teknolojileri ve
İletişim Kurumu) "site sorgu" form, which reports whether a domain is
blocked in Turkey.

The connector provides:
- Session handshake and CAPTCHA download
- CAPTCHA recognition through a pluggable solver
- Query submission with wrong-code detection and retries
- Extraction of the blocking decision from the result page
"""

# Main connector implementation
from .connector import BTKConnector

# Low-level form client
from .client import BTKSiteClient, is_captcha_rejected

# Interface definition and data model
from .interfaces import (
    BatchSummary,
    CaptchaChallenge,
    DecisionRecord,
    IBTKConnector,
    QueryFailure,
    QueryOutcome,
    QueryState,
    QuerySuccess,
    summarize,
)

# Result page extraction
from .parser import extract_decision

# Cookie session store
from .session import Session, merge_cookies

# Public API exports
__all__ = [
    "BTKConnector",
    "BTKSiteClient",
    "is_captcha_rejected",
    "IBTKConnector",
    "BatchSummary",
    "CaptchaChallenge",
    "DecisionRecord",
    "QueryFailure",
    "QueryOutcome",
    "QueryState",
    "QuerySuccess",
    "summarize",
    "extract_decision",
    "Session",
    "merge_cookies",
]
