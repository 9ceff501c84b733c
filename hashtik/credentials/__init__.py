"""
Credential generation.

Defines the request/result vocabulary as immutable dataclasses and the
generator that turns a request into unique accounts plus their script.
"""

from hashtik.credentials.models import (
    CHARACTER_SETS,
    CharacterClass,
    Credential,
    GenerationRequest,
    GenerationResult,
    PasswordPolicy,
    VendorTarget,
)
from hashtik.credentials.generator import (
    CredentialGenerator,
    generate,
    merge_existing,
    username_capacity,
    validate_request,
)

__all__ = [
    "CHARACTER_SETS",
    "CharacterClass",
    "Credential",
    "CredentialGenerator",
    "GenerationRequest",
    "GenerationResult",
    "PasswordPolicy",
    "VendorTarget",
    "generate",
    "merge_existing",
    "username_capacity",
    "validate_request",
]
