from __future__ import annotations

import pytest

from esl_gateway.app.descriptors import (
    Answer,
    Descriptor,
    DescriptorKind,
    Hangup,
    Hupall,
    PlayAndGetDigits,
    Read,
    Set,
    Sleep,
    UuidKill,
)


def test_applications_and_commands_carry_their_kind() -> None:
    assert Answer().kind is DescriptorKind.APPLICATION
    assert Hupall().kind is DescriptorKind.COMMAND
    assert isinstance(Answer(), Descriptor)


def test_optional_cause_is_dropped_from_arguments() -> None:
    assert Hangup().arguments == ()
    assert Hangup("NORMAL_CLEARING").arguments == ("NORMAL_CLEARING",)
    assert UuidKill("abcd").arguments == ("abcd",)
    assert UuidKill("abcd", "USER_BUSY").arguments == ("abcd", "USER_BUSY")


def test_set_and_sleep_render_single_argument() -> None:
    assert Set("hangup_after_bridge", "true").arguments == ("hangup_after_bridge=true",)
    assert Sleep(500).arguments == ("500",)


def test_digit_collectors_name_their_result_variable() -> None:
    collector = PlayAndGetDigits(1, 4, 3, 5000, "#", "prompt.wav", "invalid.wav", "pin")
    reader = Read(1, 1, "prompt.wav")

    assert collector.arguments == ("1", "4", "3", "5000", "#", "prompt.wav", "invalid.wav", "pin", "\\d+")
    assert collector.read_variable == "pin"
    assert reader.read_variable == "digits"
    assert Answer().read_variable is None


def test_descriptors_are_immutable() -> None:
    hangup = Hangup("USER_BUSY")

    with pytest.raises(AttributeError):
        hangup.cause = "OTHER"  # type: ignore[misc]
