# tests/unit/test_conventions.py
"""Per-convention classification, extraction and formatting."""

from __future__ import annotations

import pytest

from nbversion.conventions import (
    CONVENTIONS,
    LOWER_PREFIX,
    MODEL_BARE,
    MODEL_LOOSE,
    PAREN,
    SUFFIX,
    UNDERSCORE,
    UPPER_PREFIX,
    classify,
    default_name,
    split_ext,
)


@pytest.mark.parametrize(
    "filename, convention, version",
    [
        ("Model(v3).ipynb", PAREN, 3),
        ("Experiment(v12).ipynb", PAREN, 12),
        ("Model_v3.ipynb", UNDERSCORE, 3),
        ("ModelV3.ipynb", SUFFIX, 3),
        ("Modelv3.ipynb", SUFFIX, 3),
        ("V3_baseline.ipynb", UPPER_PREFIX, 3),
        ("v3_baseline.ipynb", LOWER_PREFIX, 3),
        ("final_Model_v3_notes.ipynb", MODEL_LOOSE, 3),
        ("Model.ipynb", MODEL_BARE, 0),
        ("model_final.ipynb", MODEL_BARE, 0),
    ],
)
def test_classify(filename, convention, version):
    assert classify(filename) == (convention, version)


@pytest.mark.parametrize("filename", ["analysis.ipynb", "notes.txt", "v2.ipynb", "Model2.ipynb", "exp_v3_Model.ipynb"])
def test_unrecognized(filename):
    assert classify(filename) == (None, None)


def test_first_match_wins():
    # Model_v3 also fits the loose "Model ... v<N>" pattern; the earlier rule claims it
    assert MODEL_LOOSE.extract("Model_v3.ipynb") == 3
    conv, _ = classify("Model_v3.ipynb")
    assert conv is UNDERSCORE


def test_rules_are_ordered():
    assert [c.rule for c in CONVENTIONS] == [1, 2, 3, 4, 5, 6, 7]
    assert [c.takes_description for c in CONVENTIONS] == [False, False, False, True, True, False, False]
    assert [c.composable for c in CONVENTIONS] == [True, True, True, True, True, False, False]


@pytest.mark.parametrize(
    "convention, source, number, desc, expected",
    [
        (PAREN, "Model(v4).ipynb", "5", "x", "Model(v5).ipynb"),
        (UNDERSCORE, "Model_v4.ipynb", "5", "x", "Model_v5.ipynb"),
        (SUFFIX, "Modelv4.ipynb", "5", "x", "ModelV5.ipynb"),
        (UPPER_PREFIX, "V4_baseline.ipynb", "5", "tuned", "V5_tuned.ipynb"),
        (LOWER_PREFIX, "v4_baseline.ipynb", "5", "tuned", "v5_tuned.ipynb"),
        (PAREN, "Model(v4).ipynb", "5.1", "x", "Model(v5.1).ipynb"),
    ],
)
def test_format(convention, source, number, desc, expected):
    assert convention.format(source, number, desc) == expected


def test_format_rejects_non_composable():
    with pytest.raises(ValueError):
        MODEL_LOOSE.format("final_Model_v3_notes.ipynb", "4", "x")
    with pytest.raises(ValueError):
        PAREN.format("Model_v3.ipynb", "4", "x")


def test_default_name_and_ext():
    assert default_name("4") == "V4_updated.ipynb"
    assert default_name("4", ".py") == "V4_updated.py"
    assert split_ext("Model(v1).ipynb") == ".ipynb"
    assert split_ext(None) == ".ipynb"
    assert split_ext("Makefile") == ".ipynb"
