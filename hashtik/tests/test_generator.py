"""Tests for the credential generator.

Covers username shape and uniqueness, the three password policies,
serial locations, avoidance of existing router usernames, request
validation and the bounded retry.
"""

from __future__ import annotations

import random

import pytest

from hashtik.credentials import (
    CHARACTER_SETS,
    CharacterClass,
    CredentialGenerator,
    GenerationRequest,
    PasswordPolicy,
    VendorTarget,
    generate,
    merge_existing,
    username_capacity,
    validate_request,
)
from hashtik.errors import RetryExhaustedError, ValidationError


class _ConstantRandom(random.Random):
    """Always picks the first element, so every draw collides."""

    def choice(self, seq):  # type: ignore[override]
        return seq[0]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def gen(rng: random.Random) -> CredentialGenerator:
    return CredentialGenerator(rng=rng)


# ---------------------------------------------------------------------------
# Usernames
# ---------------------------------------------------------------------------


class TestUsernames:
    def test_count_and_uniqueness(self, gen: CredentialGenerator) -> None:
        result = gen.generate(GenerationRequest(account_count=500, code_length=5))
        assert len(result) == 500
        assert len(set(result.usernames)) == 500

    def test_shape_prefix_suffix(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(
            prefix="HT", suffix="-x", code_length=6, account_count=20,
            character_class=CharacterClass.NUMBERS,
        )
        for name in gen.generate(req).usernames:
            assert name.startswith("HT")
            assert name.endswith("-x")
            middle = name[2:-2]
            assert len(middle) == 6
            assert set(middle) <= set(CHARACTER_SETS[CharacterClass.NUMBERS])

    @pytest.mark.parametrize("cls", list(CharacterClass))
    def test_alphabet_respected(self, gen: CredentialGenerator, cls: CharacterClass) -> None:
        req = GenerationRequest(character_class=cls, account_count=30)
        for name in gen.generate(req).usernames:
            assert set(name) <= set(CHARACTER_SETS[cls])

    def test_existing_usernames_avoided(self) -> None:
        # Same seed twice: the second run must skip everything the first produced.
        first = CredentialGenerator(rng=random.Random(7)).generate(
            GenerationRequest(account_count=50)
        )
        req = GenerationRequest(account_count=50, existing_usernames=tuple(first.usernames))
        second = CredentialGenerator(rng=random.Random(7)).generate(req)
        assert not set(first.usernames) & set(second.usernames)

    def test_seeded_runs_are_reproducible(self) -> None:
        req = GenerationRequest(account_count=10)
        a = generate(req, rng=random.Random(99))
        b = generate(req, rng=random.Random(99))
        assert a == b


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class TestPasswords:
    def test_same_as_username_uses_username_prefix(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(
            prefix="p", suffix="s", password_suffix="!",
            password_policy=PasswordPolicy.SAME_AS_USERNAME, account_count=10,
        )
        for cred in gen.generate(req).credentials:
            middle = cred.username[1:-1]
            assert cred.password == "p" + middle + "!"

    def test_independent_random_shape(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(
            code_length=7, password_suffix="#9",
            password_policy=PasswordPolicy.INDEPENDENT_RANDOM, account_count=20,
        )
        for cred in gen.generate(req).credentials:
            assert cred.password.endswith("#9")
            assert len(cred.password) == 9
            assert set(cred.password[:-2]) <= set(req.alphabet)

    def test_empty_policy_ignores_suffix(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(
            password_suffix="zzz", password_policy=PasswordPolicy.EMPTY, account_count=5,
        )
        assert all(c.password == "" for c in gen.generate(req).credentials)


# ---------------------------------------------------------------------------
# Record fields
# ---------------------------------------------------------------------------


class TestRecordFields:
    def test_serial_locations(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(
            use_serial_number=True, serial_start_number=1000, location="ignored",
            account_count=3,
        )
        assert [c.location for c in gen.generate(req).credentials] == ["1000", "1001", "1002"]

    def test_static_location_and_copies(self, gen: CredentialGenerator) -> None:
        req = GenerationRequest(location="lobby", comment="event", profile="1h", account_count=4)
        for cred in gen.generate(req).credentials:
            assert cred.location == "lobby"
            assert cred.comment == "event"
            assert cred.profile == "1h"

    def test_result_carries_script(self, gen: CredentialGenerator) -> None:
        result = gen.generate(GenerationRequest(vendor=VendorTarget.USER_MANAGER_V7, account_count=3))
        for name in result.usernames:
            assert f'/user-manager user add name="{name}"' in result.script


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        "changes",
        [
            {"code_length": 4},
            {"account_count": 0},
            {"script_delay_ms": -1},
            {"serial_start_number": -5},
            {"profile": "  "},
            {"code_length": 8.0},
            {"account_count": True},
            {"vendor": "routeros-v8"},
        ],
    )
    def test_rejected(self, changes: dict) -> None:
        with pytest.raises(ValidationError):
            validate_request(GenerationRequest(**changes))

    def test_default_request_valid(self) -> None:
        validate_request(GenerationRequest())

    def test_generator_validates_first(self, gen: CredentialGenerator) -> None:
        with pytest.raises(ValidationError):
            gen.generate(GenerationRequest(code_length=3))


# ---------------------------------------------------------------------------
# Bounded retry
# ---------------------------------------------------------------------------


class TestBoundedRetry:
    def test_capacity_subtracts_matching_existing(self) -> None:
        req = GenerationRequest(
            character_class=CharacterClass.NUMBERS, code_length=5, prefix="a",
            existing_usernames=("a00000", "a00001", "b00002", "a0000x", "a123"),
        )
        assert username_capacity(req) == 10 ** 5 - 2

    def test_capacity_shortfall_raises_before_drawing(self) -> None:
        existing = tuple(f"{i:05d}" for i in range(10 ** 5 - 3))
        req = GenerationRequest(
            character_class=CharacterClass.NUMBERS, code_length=5,
            account_count=5, existing_usernames=existing,
        )
        with pytest.raises(RetryExhaustedError) as info:
            CredentialGenerator(rng=random.Random(0)).generate(req)
        assert info.value.requested == 5
        assert info.value.generated == 0

    def test_draw_budget_exhausted(self) -> None:
        gen = CredentialGenerator(rng=_ConstantRandom(), attempts_factor=3)
        with pytest.raises(RetryExhaustedError) as info:
            gen.generate(GenerationRequest(account_count=2))
        assert info.value.generated == 1
        assert info.value.requested == 2

    def test_attempts_factor_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            CredentialGenerator(attempts_factor=0)


class TestMergeExisting:
    def test_ordered_union(self) -> None:
        assert merge_existing(["b", "a"], ["a", "c"], ("b", "d")) == ("b", "a", "c", "d")
