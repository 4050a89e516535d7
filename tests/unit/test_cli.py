"""Tests for CLI argument parsing and query construction."""

import pytest

from main import build_query, parse_args


class TestParseArgs:
    def test_defaults_to_serve(self) -> None:
        args = parse_args([])
        assert args.command == "serve"
        assert args.config == "config/settings.yaml"
        assert args.port is None

    def test_serve_overrides(self) -> None:
        args = parse_args(["serve", "--host", "127.0.0.1", "--port", "8080", "-v"])
        assert args.host == "127.0.0.1"
        assert args.port == 8080
        assert args.verbose is True

    def test_analyze_requires_role(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["analyze", "--username", "octocat"])

    def test_analyze_rejects_unknown_seniority(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([
                "analyze", "--username", "octocat", "--job-title", "Engineer",
                "--required-skills", "Go", "--seniority", "staff", "--focus", "backend",
            ])


class TestBuildQuery:
    def _args(self, *extra: str) -> list[str]:
        return [
            "analyze", "--username", "octocat", "--job-title", "Engineer",
            "--required-skills", "Go,Rust", "--seniority", "mid", "--focus", "backend",
            *extra,
        ]

    def test_maps_flags_to_query(self) -> None:
        query = build_query(parse_args(self._args()))
        assert query == {
            "username": "octocat",
            "job_title": "Engineer",
            "required_skills": "Go,Rust",
            "nice_to_have_skills": "",
            "seniority": "mid",
            "focus": "backend",
            "include_all_commits": "false",
        }

    def test_model_and_all_commits(self) -> None:
        query = build_query(parse_args(self._args("--model", "gpt-4o-mini", "--include-all-commits")))
        assert query["openai_model"] == "gpt-4o-mini"
        assert query["include_all_commits"] == "true"
