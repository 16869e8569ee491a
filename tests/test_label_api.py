from __future__ import annotations

import asyncio

import pytest

from conflictlabel.core.errors import ReconcileError
from conflictlabel.core.pr_models import PullRequest
from conflictlabel.core.types import ReconciliationContext
from conflictlabel.github.client.label_api import add_label_if_absent, remove_label_if_present

from fake_github import OWNER, REPO, FakeGitHub, pr_node


def _ctx(**overrides) -> ReconciliationContext:
    return ReconciliationContext(owner=OWNER, repo=REPO, dirty_label="conflict", **overrides)


def _pr(labels: list[str]) -> PullRequest:
    return PullRequest.model_validate(pr_node(7, mergeable="CONFLICTING", labels=labels))


def test_add_label_when_absent() -> None:
    github = FakeGitHub()

    added = asyncio.run(add_label_if_absent("conflict", _pr([]), _ctx(), github.client()))

    assert added is True
    assert github.calls == [("add_label", 7, ["conflict"])]


def test_add_label_is_idempotent() -> None:
    github = FakeGitHub()
    pr = _pr(["conflict"])

    first = asyncio.run(add_label_if_absent("conflict", pr, _ctx(), github.client()))
    second = asyncio.run(add_label_if_absent("conflict", pr, _ctx(), github.client()))

    assert (first, second) == (False, False)
    assert github.calls == []


def test_add_label_missing_permissions_tolerated(capsys) -> None:
    github = FakeGitHub()
    github.fail_missing_permissions("POST", "/issues/7/labels", status=404)

    added = asyncio.run(
        add_label_if_absent("conflict", _pr([]), _ctx(continue_on_missing_permissions=True), github.client())
    )

    assert added is False
    assert '::warning::could not add label "conflict"' in capsys.readouterr().out


def test_add_label_missing_permissions_fatal_without_opt_in() -> None:
    github = FakeGitHub()
    github.fail_missing_permissions("POST", "/issues/7/labels")

    with pytest.raises(ReconcileError, match='error adding "conflict"'):
        asyncio.run(add_label_if_absent("conflict", _pr([]), _ctx(), github.client()))


def test_add_label_not_found_is_fatal() -> None:
    github = FakeGitHub()
    github.fail("POST", "/issues/7/labels", 404, "Not Found")

    with pytest.raises(ReconcileError, match="404"):
        asyncio.run(add_label_if_absent("conflict", _pr([]), _ctx(), github.client()))


def test_remove_label_when_present() -> None:
    github = FakeGitHub()

    removed = asyncio.run(remove_label_if_present("PR: ready", _pr(["PR: ready"]), _ctx(), github.client()))

    assert removed is True
    assert github.calls == [("remove_label", 7, "PR: ready")]


def test_remove_label_when_absent_is_noop() -> None:
    github = FakeGitHub()

    removed = asyncio.run(remove_label_if_present("conflict", _pr(["other"]), _ctx(), github.client()))

    assert removed is False
    assert github.calls == []


def test_remove_label_not_found_means_already_removed() -> None:
    github = FakeGitHub()
    github.fail("DELETE", "/issues/7/labels/conflict", 404, "Label does not exist")

    removed = asyncio.run(remove_label_if_present("conflict", _pr(["conflict"]), _ctx(), github.client()))

    assert removed is False


def test_remove_label_missing_permissions_tolerated(capsys) -> None:
    github = FakeGitHub()
    github.fail_missing_permissions("DELETE", "/issues/7/labels/conflict")

    removed = asyncio.run(
        remove_label_if_present("conflict", _pr(["conflict"]), _ctx(continue_on_missing_permissions=True), github.client())
    )

    assert removed is False
    assert '::warning::could not remove label "conflict"' in capsys.readouterr().out


def test_remove_label_server_error_is_fatal() -> None:
    github = FakeGitHub()
    github.fail("DELETE", "/issues/7/labels/conflict", 502, "Bad Gateway")

    with pytest.raises(ReconcileError, match='error removing "conflict"'):
        asyncio.run(remove_label_if_present("conflict", _pr(["conflict"]), _ctx(), github.client()))
