"""
Tests for the diff engine — installed vs. missing per section.
"""

import pytest

from macup.adapters.mock import MockBackend
from macup.core.engine.diff import compute_diff, diff_section
from macup.core.errors import BackendQueryError


class TestDiffSection:
    def test_splits_in_declaration_order(self, make_section):
        backend = MockBackend("brew", installed={"wget", "git"})
        diff = diff_section(make_section("brew", items=["jq", "git", "fd", "wget"]), backend)
        assert diff.installed == ["git", "wget"]
        assert diff.missing == ["jq", "fd"]
        assert not diff.in_sync

    def test_exact_case_sensitive_match(self, make_section):
        backend = MockBackend("brew", installed={"Git"})
        diff = diff_section(make_section("brew", items=["git"]), backend)
        assert diff.missing == ["git"]

    def test_single_query(self, make_section):
        backend = MockBackend("brew")
        diff_section(make_section("brew", items=["a", "b", "c"]), backend)
        assert backend.list_calls == 1

    def test_query_error_propagates(self, make_section):
        backend = MockBackend("brew")
        backend.set_query_error()
        with pytest.raises(BackendQueryError):
            diff_section(make_section("brew", items=["git"]), backend)


class TestComputeDiff:
    def test_reports_each_section(self, registry, make_section):
        registry.register(MockBackend("brew", installed={"git"}))
        registry.register(MockBackend("npm"))

        diffs = compute_diff(
            [make_section("brew", items=["git"]), make_section("npm", items=["tsc"])],
            registry,
        )

        assert [d.section for d in diffs] == ["brew", "npm"]
        assert diffs[0].in_sync
        assert diffs[1].missing == ["tsc"]

    def test_never_installs(self, registry, make_section):
        brew = MockBackend("brew")
        registry.register(brew)
        compute_diff([make_section("brew", items=["git", "wget"])], registry)
        assert brew.call_count == 0

    def test_unknown_backend(self, registry, make_section):
        diffs = compute_diff([make_section("py", items=["black"], backend="pip")], registry)
        assert diffs[0].error_kind == "ConfigValidationError"
        assert diffs[0].missing == ["black"]

    def test_unavailable_runtime(self, registry, make_section):
        registry.register(MockBackend("mas", available=False))
        diffs = compute_diff([make_section("mas", items=["497799835"])], registry)
        assert diffs[0].error_kind == "RuntimeUnavailableError"
        assert diffs[0].missing == ["497799835"]

    def test_query_error(self, registry, make_section):
        brew = MockBackend("brew")
        brew.set_query_error("brew is broken")
        registry.register(brew)
        diffs = compute_diff([make_section("brew", items=["git"])], registry)
        assert not diffs[0].ok
        assert diffs[0].error_kind == "BackendQueryError"
        assert "brew is broken" in diffs[0].to_dict()["error"]

    def test_empty_section_not_queried(self, registry, make_section):
        brew = MockBackend("brew")
        registry.register(brew)
        diffs = compute_diff([make_section("brew")], registry)
        assert diffs[0].in_sync
        assert brew.list_calls == 0
