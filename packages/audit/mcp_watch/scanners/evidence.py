"""
Evidence sanitization and placeholder detection.

Everything a detector copies out of a scanned file passes through here
before it is stored on a Finding, so a report never repeats a live secret
and a terminal renderer never replays raw escape sequences.
"""

import re
from typing import List, Pattern, Tuple

from mcp_watch_core.models import MAX_EVIDENCE_LENGTH

# (pattern, replacement). Markers keep the family visible ("which kind of
# secret was here") and are never matched again by any pattern in the list.
SECRET_REDACTIONS: List[Tuple[Pattern, str]] = [
    # JWT triples (quoted or bare)
    (re.compile(r'eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'),
     '***JWT_REDACTED***'),
    # OpenAI / Anthropic style, including sk-proj- and sk-ant-
    (re.compile(r'(?<![A-Za-z0-9])sk-[A-Za-z0-9_-]{20,}'), 'sk-***REDACTED***'),
    # GitHub tokens
    (re.compile(r'(gh[pousr]_)[A-Za-z0-9]{20,}'), r'\1***REDACTED***'),
    # Slack tokens
    (re.compile(r'(xox[baprs]-)[A-Za-z0-9-]{10,}'), r'\1***REDACTED***'),
    # AWS access key id
    (re.compile(r'AKIA[A-Z0-9]{16}'), 'AKIA***REDACTED***'),
    # Google API key and OAuth access token
    (re.compile(r'AIza[A-Za-z0-9_-]{35}'), 'AIza***REDACTED***'),
    (re.compile(r'ya29\.[A-Za-z0-9_-]{20,}'), 'ya29.***REDACTED***'),
    # Stripe keys
    (re.compile(r'((?:sk|pk|rk)_(?:live_|test_)?)[A-Za-z0-9]{20,}'), r'\1***REDACTED***'),
    # Docker personal access token
    (re.compile(r'dckr_pat_[A-Za-z0-9_-]+'), 'dckr_pat_***REDACTED***'),
    # Long quoted base64-looking strings
    (re.compile(r'([\'"`])[A-Za-z0-9+/]{40,}={0,2}\1'), r'\1***BASE64_REDACTED***\1'),
    # Quoted values assigned to credential-looking names
    (re.compile(
        r'((?:api[_-]?key|apikey|secret|token|password|passwd)["\']?\s*[:=]\s*)'
        r'(["\'`])[^"\'`\s]{8,}\2',
        re.IGNORECASE,
    ), r'\1\2***SECRET_REDACTED***\2'),
]

ANSI_MARKER = '\\x1b[***ANSI***]'

# CSI / OSC sequences, raw or spelled out as source-code escapes
_ANSI_SEQUENCE = re.compile(
    r'(?:\x1b|\\u001[bB]|\\x1[bB]|\\033|\\e)'
    r'(?:\[[0-9;?]*[A-Za-z]|\][^\x07\x1b]*(?:\x07|\x1b\\))'
)
# Remaining C0/C1 controls except tab
_CONTROL_CHAR = re.compile(r'[\x00-\x08\x0a-\x1f\x7f-\x9f]')


def _truncate(text: str) -> str:
    return text.strip()[:MAX_EVIDENCE_LENGTH].rstrip()


def sanitize(line: str) -> str:
    """
    Redact known secret shapes, trim, and cap at 150 characters.

    Redaction runs before truncation, so a secret cut at the boundary is
    never partially disclosed. Sanitizing already-sanitized text is a no-op.
    """
    for pattern, replacement in SECRET_REDACTIONS:
        line = pattern.sub(replacement, line)
    return _truncate(line)


def sanitize_control_sequences(line: str) -> str:
    """Replace terminal control sequences with visible markers, trim, and cap."""
    line = _ANSI_SEQUENCE.sub(ANSI_MARKER, line)
    line = _CONTROL_CHAR.sub(lambda m: '\\x%02x' % ord(m.group()), line)
    return _truncate(line)


def render_evidence(line: str) -> str:
    """Evidence as stored on line-scoped findings."""
    return sanitize_control_sequences(sanitize(line))


EXAMPLE_PATTERNS: List[Pattern] = [
    re.compile(r'your[-_ ]?(?:api[-_ ]?key|token|secret|password)'),
    re.compile(
        r'(?<![a-z])(?:examples?|demo|tests?|placeholder|dummy|fake|mock|sample'
        r'|x{3,}|y{3,}|z{3,})(?![a-z])'
    ),
    re.compile(r'(?<![a-z0-9])(?:0?123456(?:789?0?)?|abc123|abcdef)(?![a-z0-9])'),
    re.compile(r'<[^>]*(?:api[-_ ]?key|token|secret|password)[^>]*>'),
    re.compile(r'\$\{[^}]*(?:api[-_ ]?key|token|secret|password)[^}]*\}'),
    re.compile(r'\{\{[^}]*\}\}'),
    re.compile(r'\[your[-_ ][^\]]*\]'),
    re.compile(r'(?:replace|change)[-_ ]?me'),
    re.compile(r'insert[-_ ]?(?:here|your)'),
    re.compile(r'(?:key|token|secret)[-_ ]?(?:here|placeholder|example)'),
]

_CAMEL_BOUNDARY = re.compile(r'([a-z])([A-Z])')


def is_example_credential(line: str) -> bool:
    """
    Whether a line looks like placeholder or documentation data.

    Words are matched on letter boundaries after splitting camelCase, so
    ``myTestKey`` counts as a placeholder but a random token body that
    happens to contain ``test`` between other letters does not.
    """
    normalized = _CAMEL_BOUNDARY.sub(r'\1 \2', line).lower()
    return any(pattern.search(normalized) for pattern in EXAMPLE_PATTERNS)
