import json
import os
import re
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def _lenient_parse(text: str, context: str) -> Optional[Dict[str, Any]]:
    """Attempt to parse non-strict JSON and log what was attempted."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(
            f"{context} - JSONDecodeError: {e.msg} at line {e.lineno} column {e.colno} (char {e.pos})"
        )

    # Single quotes are common in hand edited env blobs
    fixed = text.replace("'", '"')
    if fixed != text:
        logger.warning(f"{context} - Retrying after replacing single quotes with double quotes")
        try:
            return json.loads(fixed)
        except json.JSONDecodeError:
            pass

    # Quote unquoted property names (shallow heuristic)
    fixed = re.sub(r'([{,])\s*([A-Za-z_][A-Za-z0-9_]*)\s*:', r'\1"\2":', text)
    if fixed != text:
        logger.warning(f"{context} - Retrying after quoting unquoted property names")
        try:
            return json.loads(fixed)
        except json.JSONDecodeError:
            pass

    logger.error(f"{context} - Lenient parsing attempts failed")
    return None


def _load_from_env() -> Optional[Dict[str, Any]]:
    raw = os.getenv('CREDENTIALS_JSON')
    if not raw:
        return None
    logger.info("credentials: Using CREDENTIALS_JSON environment variable")
    return _lenient_parse(raw, "credentials.env:CREDENTIALS_JSON")


def _load_from_file(path: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(path):
        logger.debug(f"credentials: File not found: {path}")
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        logger.error(f"credentials: Could not read {path}: {e}")
        return None
    logger.info(f"credentials: Loading credentials from {path} ({len(content)} bytes)")
    return _lenient_parse(content, f"credentials.file:{path}")


def credential_paths() -> Dict[str, str]:
    """Locations searched for a credentials file, in priority order"""
    explicit = os.getenv('CREDENTIALS_FILE')
    repo_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    paths = {}
    if explicit:
        paths['explicit'] = explicit
    paths['primary'] = os.path.join(repo_root, 'credentials.json')
    paths['fallback'] = os.path.join(repo_root, 'credentials-test.json')
    return paths


def load_credentials() -> Dict[str, Any]:
    """Load credentials from env or files; an empty dict when nothing is found"""
    creds = _load_from_env()
    if isinstance(creds, dict):
        return creds

    for name, path in credential_paths().items():
        creds = _load_from_file(path)
        if isinstance(creds, dict):
            if name == 'fallback':
                logger.warning("credentials: Using credentials-test.json")
            return creds

    logger.info("credentials: No credentials file found; using environment only")
    return {}


def get_section(name: str) -> Dict[str, Any]:
    """Get one section of the credentials with defensive defaults."""
    section = load_credentials().get(name, {})
    if not isinstance(section, dict):
        logger.error(f"credentials: Section '{name}' is not an object; got {type(section).__name__}")
        return {}
    return section
