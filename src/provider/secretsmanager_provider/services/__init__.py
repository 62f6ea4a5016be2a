"""
Secret lookup and body parsing used by the provider plugins.
"""

from .parsing import parse_secret_json, parse_secret_string  # noqa: F401
from .secrets import ResolvedSecret, SecretLookupService  # noqa: F401
