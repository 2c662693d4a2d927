import re
from typing import Dict


EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(?<!\d)\+\d{1,3}[ -]?\d{3}[ -]?\d{3}[ -]?\d{3,4}(?!\d)")
TOKEN_RE = re.compile(r"\b[\w-]{24,28}\.[\w-]{6,7}\.[\w-]{27,38}\b")


def mask_sensitive_data(text: str) -> str:
    masked = TOKEN_RE.sub("<<token>>", text)
    masked = EMAIL_RE.sub("<<email>>", masked)
    masked = PHONE_RE.sub("<<phone>>", masked)
    return masked


def redact_payload(payload: Dict) -> Dict:
    safe = {}
    for k, v in payload.items():
        if isinstance(v, str):
            safe[k] = mask_sensitive_data(v)
        else:
            safe[k] = v
    return safe
