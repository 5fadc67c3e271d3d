# tests/unit/test_composer.py
from __future__ import annotations

import datetime as dt

import pytest

from nbversion.composer import (
    build_banner,
    compose_next_name,
    label_number,
    needs_short_description,
    normalize_label,
)
from nbversion.detector import VersionState, detect_versions


@pytest.mark.parametrize("raw, expected", [("v2", "v2"), ("V2", "v2"), ("2", "v2"), ("  v3 ", "v3"), ("v2.1", "v2.1")])
def test_normalize_label(raw, expected):
    assert normalize_label(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "v 2", "v2/x", "v2\\x"])
def test_normalize_label_rejects_invalid(raw):
    with pytest.raises(ValueError):
        normalize_label(raw)


def test_label_number():
    assert label_number("v12") == "12"
    assert label_number("V3") == "3"


def test_compose_follows_latest_convention():
    state = detect_versions(["Model(v4).ipynb", "Model(v2).ipynb"])
    comp = compose_next_name("v5", state)
    assert comp.target == "Model(v5).ipynb"
    assert comp.source == "Model(v4).ipynb"
    assert not comp.is_noop
    assert not comp.uses_default


def test_compose_underscore_and_suffix():
    assert compose_next_name("v3", detect_versions(["Exp_v2.ipynb"])).target == "Exp_v3.ipynb"
    # suffix convention always writes a capital V
    assert compose_next_name("v3", detect_versions(["Expv2.ipynb"])).target == "ExpV3.ipynb"


def test_compose_prefix_uses_short_description():
    state = detect_versions(["V1_baseline.ipynb"])
    assert needs_short_description(state)
    assert compose_next_name("v2", state, "tuned").target == "V2_tuned.ipynb"
    assert compose_next_name("v2", state).target == "V2_updated.ipynb"
    assert compose_next_name("v2", state, "   ").target == "V2_updated.ipynb"

    state = detect_versions(["v1_baseline.ipynb"])
    assert compose_next_name("v2", state, "tuned").target == "v2_tuned.ipynb"


def test_compose_default_name():
    comp = compose_next_name("v1", VersionState())
    assert comp.target == "V1_updated.ipynb"
    assert comp.source is None
    assert comp.uses_default
    assert not needs_short_description(VersionState())


def test_compose_loose_and_bare_model_fall_back_to_default():
    comp = compose_next_name("v4", detect_versions(["final_Model_v3_notes.ipynb"]))
    assert comp.target == "V4_updated.ipynb"
    assert comp.source == "final_Model_v3_notes.ipynb"
    assert comp.uses_default

    comp = compose_next_name("v1", detect_versions(["Model.ipynb"]))
    assert comp.target == "V1_updated.ipynb"


def test_compose_same_label_is_noop():
    comp = compose_next_name("v4", detect_versions(["Model(v4).ipynb"]))
    assert comp.target == "Model(v4).ipynb"
    assert comp.is_noop


def test_banner_cell():
    created = dt.datetime(2024, 5, 1, 9, 30, 0)
    cell = build_banner("V2", "better loss", created)
    assert cell["cell_type"] == "markdown"
    assert cell["metadata"] == {}
    assert cell["source"] == [
        "# v2 - better loss\n",
        "**Created:** 2024-05-01 09:30:00\n",
        "**Previous Version:** Copied and updated\n",
        "\n",
        "## Changes in this version:\n",
        "- better loss\n",
    ]


@pytest.mark.parametrize("short", ["lr/2", "lr\\2"])
def test_compose_rejects_path_separator_in_short_description(short):
    state = detect_versions(["V4_baseline.ipynb"])
    with pytest.raises(ValueError, match="path separator"):
        compose_next_name("v5", state, short)
