"""
Named heuristics that rule tables can reference with ``predicate:``.

Each heuristic receives the text under evaluation (a line for line-scoped
rules, the whole file for file-scoped rules) plus the full file content,
and returns a short evidence string when it fires or None when it does not.
"""

import re
from typing import Callable, Dict, List, Optional

Heuristic = Callable[[str, str], Optional[str]]

HEURISTICS: Dict[str, Heuristic] = {}


def heuristic(name: str):
    """Register a function under ``name`` for use from rule tables."""
    def decorator(func: Heuristic) -> Heuristic:
        HEURISTICS[name] = func
        return func
    return decorator


# Parameter names that MCP clients may auto-fill with model context
SENSITIVE_PARAMETERS = frozenset({
    'conversation_history', 'tool_call_history', 'system_prompt',
    'chain_of_thought', 'model_name', 'tools_list', 'full_context',
    'session_data', 'internal_state', 'debug_info',
})

_CONTROL_KEYWORDS = frozenset({'if', 'for', 'while', 'switch', 'catch', 'return', 'function'})

_FUNCTION_SIGNATURES = [
    re.compile(r'^(\s*)(?:async\s+)?def\s+(\w+)\s*\(([^)]*)\)'),
    re.compile(r'()\bfunction\s*\*?\s*(\w+)\s*\(([^)]*)\)'),
    re.compile(r'()\b(\w+)\s*=\s*(?:async\s*)?\(([^)]*)\)\s*(?::\s*[^=]+)?=>'),
    re.compile(r'()\b(\w+)\s*\(([^)]*)\)\s*(?::\s*[\w<>\[\]|, ]+)?\s*\{'),
]


def _parameter_names(parameters: str) -> List[str]:
    names = []
    for raw in parameters.split(','):
        match = re.match(r'\s*[*.{\[]*\s*(\w+)', raw)
        if match:
            names.append(match.group(1))
    return names


def _python_body(content: str, name: str) -> Optional[str]:
    """Body of ``def name`` by indentation; None when not found."""
    lines = content.split('\n')
    signature = re.compile(r'^(\s*)(?:async\s+)?def\s+' + re.escape(name) + r'\s*\(')
    for index, text in enumerate(lines):
        match = signature.match(text)
        if not match:
            continue
        indent = len(match.group(1))

        # Find the line that closes the signature
        end = index
        while end < len(lines) and not re.search(r':\s*(?:#.*)?$', lines[end]):
            end += 1
        if end >= len(lines):
            return None

        inline = re.search(r'\)\s*(?:->[^:]+)?:\s*(.+)$', lines[end])
        if inline and not inline.group(1).lstrip().startswith('#'):
            return inline.group(1)

        body = []
        for follow in lines[end + 1:]:
            if follow.strip() and len(follow) - len(follow.lstrip()) <= indent:
                break
            body.append(follow)
        return '\n'.join(body)
    return None


def _brace_body(content: str, name: str) -> Optional[str]:
    """Body of a brace-delimited function named ``name``; None when not found."""
    signature = re.compile(
        r'\b' + re.escape(name) + r'\s*(?:=\s*(?:async\s*)?(?:function\s*)?)?'
        r'\([^)]*\)[^{;\n=]*(?:(=>)\s*)?(\{)?'
    )
    for match in signature.finditer(content):
        if match.group(2) is None:
            if match.group(1):
                # Concise arrow body
                rest = content[match.end():]
                return rest.split('\n', 1)[0]
            continue
        start = match.end()
        depth = 1
        for position in range(start, len(content)):
            char = content[position]
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return content[start:position]
        return content[start:]
    return None


@heuristic('unused_sensitive_parameter')
def unused_sensitive_parameter(line: str, content: str) -> Optional[str]:
    """
    A function declares a context-extracting parameter but never reads it.

    Function bodies are located with indentation (Python) or brace counting
    (JS/TS); this is approximate. When no body can be found the parameter
    is reported as unused.
    """
    for pattern in _FUNCTION_SIGNATURES:
        match = pattern.search(line)
        if match:
            break
    else:
        return None

    name, parameters = match.group(2), match.group(3)
    if name in _CONTROL_KEYWORDS or not parameters.strip():
        return None

    sensitive = [p for p in _parameter_names(parameters) if p in SENSITIVE_PARAMETERS]
    if not sensitive:
        return None

    if line.lstrip().startswith(('def ', 'async def ')):
        body = _python_body(content, name)
    else:
        body = _brace_body(content, name)

    if body is None:
        return line

    for param in sensitive:
        if not re.search(r'\b' + re.escape(param) + r'\b', body):
            return line
    return None


POPULAR_SERVICES = (
    'github', 'gitlab', 'slack', 'discord', 'jira', 'confluence',
    'aws', 'google', 'microsoft', 'azure', 'dropbox', 'box',
)

_NAME_VALUE = re.compile(r'\bname\b["\']?\s*[:=]\s*["\'`]([^"\'`\n]+)["\'`]', re.IGNORECASE)


@heuristic('suspicious_server_name')
def suspicious_server_name(text: str, content: str) -> Optional[str]:
    """A declared name imitates a widely trusted service."""
    for match in _NAME_VALUE.finditer(text):
        server_name = match.group(1).lower()
        if server_name.startswith('my-') or any(
            marker in server_name for marker in ('test', 'demo', 'example')
        ):
            continue
        for service in POPULAR_SERVICES:
            if re.search(r'(?<![a-z])' + service + r'(?![a-z])', server_name):
                return f"Server name '{match.group(1)}' resembles trusted service '{service}'"
    return None


WHITESPACE_THRESHOLD = 100


@heuristic('whitespace_injection')
def whitespace_injection(line: str, content: str) -> Optional[str]:
    """More than 100 characters of padding around visible content."""
    stripped = line.strip()
    padding = len(line) - len(stripped)
    if stripped and padding > WHITESPACE_THRESHOLD:
        return f"Line contains {padding} whitespace characters"
    return None
