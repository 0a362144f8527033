from typing import Literal, Optional


def _rstrip_slash(s: str) -> str:
    return s[:-1] if s.endswith("/") else s


def socket_base_url(api_base_url: str) -> str:
    """Return the Socket.IO server URL: the API base with its /api suffix removed.

    http://host:3007/api -> http://host:3007
    """
    base = _rstrip_slash(api_base_url.strip())
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return base


def sse_url(api_base_url: str, practice_id: int | str, patient_id: Optional[int | str] = None) -> str:
    """Patient stream when a patient id is given, practice-wide stream otherwise."""
    base = _rstrip_slash(api_base_url.strip())
    if patient_id is not None:
        return f"{base}/vitals/sse/{practice_id}/{patient_id}"
    return f"{base}/vitals/sse/practice/{practice_id}"


def build_cookie_header(cookie_name: str, session_id: Optional[str]) -> Optional[str]:
    # Format: evitals_session=<session_id>
    if not session_id:
        return None
    return f"{cookie_name}={session_id}"


def redact_string(s: str, redaction_type: Literal['all', 'start', 'end'] = None) -> str:
    """
    Redacts all or some of the input string s
    Redaction type can be 'all', 'start', 'end';
        all - entire string
        start - beginning of string redacted
        end - end of string redacted
    """
    valid_redaction_types = {'all', 'start', 'end'}
    redaction_type = redaction_type.lower() if redaction_type else 'end'
    redaction_type = redaction_type if redaction_type in valid_redaction_types else 'end'

    if s is None or not isinstance(s, str):
        return s
    elif redaction_type == "all" or len(s) <= 1:
        return "*****"
    elif redaction_type == "start":
        return "****" + s[-1]
    else:  # redaction_type == end
        return s[0] + "****"
