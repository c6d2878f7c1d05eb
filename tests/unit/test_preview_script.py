from __future__ import annotations

import pytest

from scripts import preview_recommendations as preview


def test_parse_args_defaults():
    args = preview.parse_args(["u1"])

    assert args.user_id == "u1"
    assert args.type == "user_based"
    assert args.domains == "books,movies,podcasts"
    assert args.limit == 10
    assert args.seed is None
    assert args.record is False


def test_parse_args_rejects_unknown_type():
    with pytest.raises(SystemExit):
        preview.parse_args(["u1", "--type", "surprise"])


def test_parse_args_accepts_overrides():
    args = preview.parse_args(
        ["u1", "--type", "all", "--domains", "brands", "--seed", "7", "--record"]
    )

    assert args.type == "all"
    assert args.domains == "brands"
    assert args.seed == 7
    assert args.record is True
