# SPDX-License-Identifier: Apache-2.0

from formguard.utils.enum import StrLabelEnum


class Colour(StrLabelEnum):
    Red = "red", "A warm red"
    Blue = "blue", "A cold blue"


def test_value_and_label():
    assert Colour.Red.value == "red"
    assert Colour.Red.label == "A warm red"
    assert Colour("blue") is Colour.Blue


def test_is_a_string():
    assert Colour.Red == "red"
    assert isinstance(Colour.Blue, str)
    assert f"{Colour.Blue.value}" == "blue"


def test_values():
    assert Colour.values() == ["red", "blue"]
