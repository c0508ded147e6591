"""
Tests for the command-line entry point.
"""
import json
from unittest.mock import AsyncMock

import pytest

from moltspace import run_ingest


def test_parse_args_defaults():
    args = run_ingest.parse_args([])

    assert args.max_posts == 100
    assert args.include_comments is False


def test_parse_args_rejects_zero_posts():
    with pytest.raises(SystemExit):
        run_ingest.parse_args(["--max-posts", "0"])


def test_main_prints_result(monkeypatch, capsys):
    result = {'success': True, 'stats': {'postsProcessed': 2, 'errors': []}}
    monkeypatch.setattr(run_ingest, "run", AsyncMock(return_value=result))

    assert run_ingest.main(["--max-posts", "2", "--include-comments"]) == 0

    assert json.loads(capsys.readouterr().out) == result
    args = run_ingest.run.await_args.args[0]
    assert (args.max_posts, args.include_comments) == (2, True)


def test_main_exit_code_on_failure(monkeypatch, capsys):
    monkeypatch.setattr(
        run_ingest, "run",
        AsyncMock(return_value={'success': False, 'error': 'database is down'})
    )

    assert run_ingest.main([]) == 1
