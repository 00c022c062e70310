"""Result page extraction for BTK site queries.

The result page carries a Turkish description in ``span.yazi2_2`` and an
English one in ``span.yazi3_1``. When a domain is blocked the Turkish text
reads like::

    ... 12/05/2023 tarihli ve 2023/1234 D. İş sayılı İstanbul 5. Sulh Ceza
    Hakimliği kararıyla erişim engellenmiştir.

``extract_decision`` is pure and never raises.
"""

import re
from typing import Optional

from .interfaces import DecisionRecord

NO_DECISION_TEXT = "Bu site hakkında herhangi bir engel kararı bulunmamaktadır."

BLOCKED_PHRASE = "engellenmiştir"

_LOCAL_SPAN = re.compile(r'<span class="yazi2_2">(.*?)</span>', re.IGNORECASE | re.DOTALL)
_FOREIGN_SPAN = re.compile(r'<span class="yazi3_1">(.*?)</span>', re.IGNORECASE | re.DOTALL)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_SPACES = re.compile(r"\s+")

# Case type: the letter run (Turkish letters, dots and spaces) up to "sayılı"
_DECISION = re.compile(
    r"(\d{2}/\d{2}/\d{4}) tarihli ve "
    r"((\d+/\d+)\s+([A-Za-zİıÜüÖöÇçŞşĞğÂâÎîÛû.\s]+?))"
    r" sayılı (.+?) kararıyla"
)

_NO_DECISION_PATTERNS = [
    re.compile(r"herhangi bir (?:idari|yargı) karar.{0,40}?bulunmamaktadır", re.IGNORECASE | re.DOTALL),
    re.compile(r"uygulanan bir karar bulunamadı", re.IGNORECASE),
    re.compile(r"karar bulunamadı", re.IGNORECASE),
    re.compile(r"engel.{0,20}bulunmamaktadır", re.IGNORECASE | re.DOTALL),
]

_ENTITIES = {
    "&nbsp;": " ",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&amp;": "&",  # last, so "&amp;nbsp;" stays literal
}


def clean_html(fragment: str) -> str:
    """Strip tags, decode the common entities and collapse whitespace.

    Line breaks become spaces; any other tag is removed without a trace,
    since inline markup can split a word (``engellen<b>miştir</b>``).
    """
    text = _TAG.sub("", _LINE_BREAK.sub(" ", fragment))
    for entity, char in _ENTITIES.items():
        text = text.replace(entity, char)
    return _SPACES.sub(" ", text).strip()


def _first_span(pattern: "re.Pattern[str]", body: str) -> Optional[str]:
    match = pattern.search(body)
    if not match:
        return None
    return clean_html(match.group(1)) or None


def has_no_decision_notice(body: str) -> bool:
    """True if the page states that no blocking decision exists."""
    return any(pattern.search(body) for pattern in _NO_DECISION_PATTERNS)


def extract_decision(body: str) -> DecisionRecord:
    """Extract the blocking decision from a result page.

    An explicit "no decision" notice anywhere on the page wins over a
    blocking phrase: some pages quote legal boilerplate that contains the
    word for "blocked" next to the notice.

    Args:
        body: Decoded HTML of the result page.

    Returns:
        The decision record; an empty body yields a not-blocked record
        with every field absent.
    """
    body = body or ""

    if has_no_decision_notice(body):
        return DecisionRecord(blocked=False, local_description=NO_DECISION_TEXT)

    local = _first_span(_LOCAL_SPAN, body)
    if not local or BLOCKED_PHRASE not in local:
        return DecisionRecord(blocked=False)

    foreign = _first_span(_FOREIGN_SPAN, body)
    match = _DECISION.search(local)
    if not match:
        return DecisionRecord(blocked=True, local_description=local, foreign_description=foreign)

    return DecisionRecord(
        blocked=True,
        decision_date=match.group(1),
        decision_number=match.group(2).strip(),
        case_number=match.group(3),
        case_type=match.group(4).strip(),
        court=match.group(5).strip(),
        local_description=local,
        foreign_description=foreign,
    )
