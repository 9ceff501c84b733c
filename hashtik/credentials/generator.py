"""Credential generator -- unique usernames, passwords and the matching script.

Algorithm (per account ``i``):
    1. Draw ``prefix + random(code_length) + suffix`` until it is not in the
       running set (seeded with the router's existing usernames).
    2. Derive the password from the policy.
    3. Resolve location: serial ``start + i`` or the static location.
    4. Record the credential.
The script is emitted afterwards from the complete credential list.

Bounded retry:
    Rejection sampling on a small alphabet can loop forever once the
    username space is used up.  The generator refuses up front when the
    free space is smaller than the batch, and caps the total number of
    draws at ``account_count * attempts_factor``.  Either condition raises
    ``RetryExhaustedError`` and no partial result is returned.

Randomness:
    ``secrets.SystemRandom`` by default.  Tests pass a seeded
    ``random.Random`` for reproducible output.
"""

from __future__ import annotations

import logging
import random
import secrets
from typing import Iterable

from hashtik.credentials.models import (
    CharacterClass,
    Credential,
    GenerationRequest,
    GenerationResult,
    MIN_CODE_LENGTH,
    PasswordPolicy,
    VendorTarget,
)
from hashtik.errors import RetryExhaustedError, ValidationError
from hashtik.script.emitter import ScriptEmitter

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS_FACTOR = 50


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _require_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    return value


def validate_request(request: GenerationRequest) -> None:
    """Reject malformed requests before anything is generated.

    Raises
    ------
    ValidationError
        On a non-integer or out-of-range number, an unknown enum value,
        or a blank profile.
    """
    try:
        VendorTarget(request.vendor)
        CharacterClass(request.character_class)
        PasswordPolicy(request.password_policy)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    code_length = _require_int("code_length", request.code_length)
    if code_length < MIN_CODE_LENGTH:
        raise ValidationError(
            f"code_length must be >= {MIN_CODE_LENGTH}, got {code_length}"
        )

    account_count = _require_int("account_count", request.account_count)
    if account_count < 1:
        raise ValidationError(f"account_count must be >= 1, got {account_count}")

    delay = _require_int("script_delay_ms", request.script_delay_ms)
    if delay < 0:
        raise ValidationError(f"script_delay_ms must be >= 0, got {delay}")

    serial = _require_int("serial_start_number", request.serial_start_number)
    if serial < 0:
        raise ValidationError(f"serial_start_number must be >= 0, got {serial}")

    if not request.profile.strip():
        raise ValidationError("profile is required")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def random_string(alphabet: str, length: int, rng: random.Random) -> str:
    """Draw *length* characters uniformly from *alphabet*."""
    return "".join(rng.choice(alphabet) for _ in range(length))


def username_capacity(request: GenerationRequest) -> int:
    """Number of usernames still free for this request's shape.

    The full space is ``len(alphabet) ** code_length``; existing usernames
    that fit the same prefix/suffix/length/alphabet pattern are subtracted.
    """
    alphabet = set(request.alphabet)
    total = len(alphabet) ** request.code_length
    taken = sum(
        1 for name in set(request.existing_usernames)
        if _fits_pattern(name, request, alphabet)
    )
    return total - taken


def _fits_pattern(name: str, request: GenerationRequest, alphabet: set[str]) -> bool:
    prefix, suffix = request.prefix, request.suffix
    if len(name) != len(prefix) + request.code_length + len(suffix):
        return False
    if not (name.startswith(prefix) and name.endswith(suffix)):
        return False
    middle = name[len(prefix):len(name) - len(suffix)]
    return all(ch in alphabet for ch in middle)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class CredentialGenerator:
    """Produce credentials and their RouterOS script.

    Parameters
    ----------
    rng : random.Random | None
        Randomness source; ``None`` uses ``secrets.SystemRandom()``.
    attempts_factor : int
        Draw budget per requested account.
    escape_strings : bool
        Forwarded to :class:`ScriptEmitter`.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        attempts_factor: int = DEFAULT_ATTEMPTS_FACTOR,
        escape_strings: bool = False,
    ) -> None:
        if attempts_factor < 1:
            raise ValueError(f"attempts_factor must be >= 1, got {attempts_factor}")
        self._rng = rng if rng is not None else secrets.SystemRandom()
        self._attempts_factor = attempts_factor
        self._escape_strings = escape_strings

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one generation.

        Raises
        ------
        ValidationError
            If the request is malformed.
        RetryExhaustedError
            If enough unique usernames cannot be found.
        """
        validate_request(request)

        capacity = username_capacity(request)
        if capacity < request.account_count:
            raise RetryExhaustedError(
                f"Only {max(capacity, 0)} unused usernames exist for "
                f"{len(request.alphabet)} characters x length "
                f"{request.code_length}; {request.account_count} requested. "
                f"Increase the code length or use a larger character set.",
                generated=0,
                requested=request.account_count,
            )

        usernames = self._draw_usernames(request)
        credentials = tuple(
            Credential(
                username=username,
                password=self._password_for(username, request),
                profile=request.profile,
                comment=request.comment,
                location=self._location_for(i, request),
            )
            for i, username in enumerate(usernames)
        )

        emitter = ScriptEmitter(request, escape_strings=self._escape_strings)
        script = emitter.generate(credentials)

        logger.info(
            "Generated %d credentials (%s, %s, length %d)",
            len(credentials),
            VendorTarget(request.vendor).value,
            PasswordPolicy(request.password_policy).value,
            request.code_length,
        )
        return GenerationResult(credentials=credentials, script=script)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _draw_usernames(self, request: GenerationRequest) -> list[str]:
        used: set[str] = set(request.existing_usernames)
        budget = request.account_count * self._attempts_factor
        attempts = 0
        collisions = 0
        names: list[str] = []

        while len(names) < request.account_count:
            if attempts >= budget:
                raise RetryExhaustedError(
                    f"Could not find {request.account_count} unique usernames "
                    f"within {budget} attempts ({len(names)} found)",
                    generated=len(names),
                    requested=request.account_count,
                )
            attempts += 1
            candidate = (
                request.prefix
                + random_string(request.alphabet, request.code_length, self._rng)
                + request.suffix
            )
            if candidate in used:
                collisions += 1
                continue
            used.add(candidate)
            names.append(candidate)

        if collisions:
            logger.debug("Username collisions redrawn: %d", collisions)
        return names

    def _password_for(self, username: str, request: GenerationRequest) -> str:
        policy = PasswordPolicy(request.password_policy)
        if policy is PasswordPolicy.EMPTY:
            return ""
        if policy is PasswordPolicy.SAME_AS_USERNAME:
            middle = username[len(request.prefix):len(username) - len(request.suffix)]
            # Passwords reuse the username prefix.
            return request.prefix + middle + request.password_suffix
        return (
            random_string(request.alphabet, request.code_length, self._rng)
            + request.password_suffix
        )

    @staticmethod
    def _location_for(index: int, request: GenerationRequest) -> str:
        if request.use_serial_number:
            return str(request.serial_start_number + index)
        return request.location


def generate(
    request: GenerationRequest,
    rng: random.Random | None = None,
    attempts_factor: int = DEFAULT_ATTEMPTS_FACTOR,
    escape_strings: bool = False,
) -> GenerationResult:
    """Generate credentials and script for *request* (functional entry point)."""
    gen = CredentialGenerator(
        rng=rng, attempts_factor=attempts_factor, escape_strings=escape_strings,
    )
    return gen.generate(request)


def merge_existing(request_usernames: Iterable[str], *more: Iterable[str]) -> tuple[str, ...]:
    """Union of username lists, order preserved, for ``existing_usernames``."""
    seen: dict[str, None] = {}
    for group in (request_usernames, *more):
        for name in group:
            seen.setdefault(name, None)
    return tuple(seen)
