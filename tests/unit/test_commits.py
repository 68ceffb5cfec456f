"""Tests for conventional commit parsing."""

from __future__ import annotations

import itertools
import logging

import pytest

from tagsmith.core.commits import (
    Commit,
    CommitFilter,
    CommitType,
    calculate_bump,
    classify_commits,
    format_commit_for_changelog,
    group_commits_by_type,
    parse_commit,
)
from tagsmith.core.version import BumpType
from tagsmith.exceptions import ConfigValidationError


def _commits(*subjects: str) -> list[Commit]:
    return [Commit(sha=f"{i:040d}", subject=subject) for i, subject in enumerate(subjects)]


class TestCommitFromMessage:
    """Tests for Commit.from_message()."""

    def test_subject_and_body(self):
        """The first line is the subject, the rest the body."""
        commit = Commit.from_message("abc", "feat: add X\n\nLonger text.\nMore.\n")

        assert commit.subject == "feat: add X"
        assert commit.body == "Longer text.\nMore."

    def test_subject_only(self):
        commit = Commit.from_message("abc", "fix: y\n")

        assert commit.subject == "fix: y"
        assert commit.body == ""


class TestParseCommit:
    """Tests for parse_commit()."""

    def test_parse_simple_feat(self):
        """Parse a simple feat commit."""
        record = parse_commit(Commit(sha="abc123", subject="feat: add new feature"))

        assert record.is_conventional
        assert record.commit_type == CommitType.FEAT
        assert record.kind == "feat"
        assert record.scope is None
        assert record.description == "add new feature"
        assert not record.is_breaking

    def test_parse_with_scope(self):
        """Parse commit with scope."""
        record = parse_commit(Commit(sha="abc123", subject="fix(api): handle null response"))

        assert record.commit_type == CommitType.FIX
        assert record.scope == "api"
        assert record.description == "handle null response"

    def test_parse_breaking_with_exclamation(self):
        """Breaking marker wins over the feat kind."""
        record = parse_commit(Commit(sha="abc123", subject="feat!: redesign API"))

        assert record.is_breaking
        assert record.commit_type == CommitType.BREAKING
        assert record.kind == "feat"

    def test_parse_breaking_with_scope_and_exclamation(self):
        record = parse_commit(Commit(sha="abc123", subject="refactor(core)!: change config format"))

        assert record.commit_type == CommitType.BREAKING
        assert record.scope == "core"

    @pytest.mark.parametrize(
        "body",
        [
            "BREAKING CHANGE: the API changed",
            "Some context.\n\nBREAKING-CHANGE: removed flag",
            "   BREAKING CHANGE: indented footer",
        ],
    )
    def test_parse_breaking_footer(self, body: str):
        """A BREAKING CHANGE footer marks the commit breaking."""
        record = parse_commit(Commit(sha="abc123", subject="fix: tweak", body=body))

        assert record.is_breaking
        assert record.commit_type == CommitType.BREAKING

    def test_breaking_footer_must_start_the_line(self):
        record = parse_commit(
            Commit(sha="abc123", subject="fix: tweak", body="No BREAKING CHANGE: here")
        )

        assert not record.is_breaking
        assert record.commit_type == CommitType.FIX

    def test_kind_is_case_insensitive(self):
        record = parse_commit(Commit(sha="abc123", subject="Feat: shout"))

        assert record.commit_type == CommitType.FEAT
        assert record.kind == "feat"

    def test_other_conventional_kind(self):
        record = parse_commit(Commit(sha="abc123", subject="docs(readme): typo"))

        assert record.is_conventional
        assert record.commit_type == CommitType.OTHER
        assert record.kind == "docs"

    def test_non_conventional_degrades_to_other(self, caplog: pytest.LogCaptureFixture):
        """Unparseable subjects never raise."""
        with caplog.at_level(logging.DEBUG, logger="tagsmith.core.commits"):
            record = parse_commit(Commit(sha="abc12345ff", subject="Update README"))

        assert not record.is_conventional
        assert record.commit_type == CommitType.OTHER
        assert record.description == "Update README"
        assert record.kind is None
        assert "not conventional" in caplog.text

    def test_non_conventional_with_breaking_footer(self):
        record = parse_commit(
            Commit(sha="abc123", subject="Rewrite everything", body="BREAKING CHANGE: all of it")
        )

        assert record.commit_type == CommitType.OTHER
        assert record.is_breaking
        assert record.bump == BumpType.MAJOR


class TestCommitFilter:
    """Tests for ignore patterns."""

    @pytest.mark.parametrize(
        "subject",
        [
            "chore: wip",
            "feat: fixup",
            "wip: half done",
            "fixup: typo",
            "wip",
            "fixup",
            "Merge branch 'main' into feature",
            "Merge pull request #12 from acme/topic",
            "chore: Updated CHANGELOG.md.",
            "chore: Updated version.",
        ],
    )
    def test_default_patterns_ignore(self, subject: str):
        assert CommitFilter().is_ignored(subject)

    @pytest.mark.parametrize(
        "subject",
        [
            "feat: add X",
            "chore: wip things",
            "fix: wipe cache",
            "WIP",
            "merge: thing",
            "chore: Updated README.md.",
        ],
    )
    def test_default_patterns_keep(self, subject: str):
        """Patterns must match the whole subject."""
        assert not CommitFilter().is_ignored(subject)

    def test_full_match_not_search(self):
        commit_filter = CommitFilter([r"skip"])

        assert commit_filter.is_ignored("skip")
        assert not commit_filter.is_ignored("chore: skip ci")

    def test_custom_patterns(self):
        commit_filter = CommitFilter([r"^chore\(deps\): .+$"])

        assert commit_filter.patterns == (r"^chore\(deps\): .+$",)
        assert commit_filter.is_ignored("chore(deps): bump requests")
        assert not commit_filter.is_ignored("Merge branch 'x'")

    def test_invalid_pattern(self):
        with pytest.raises(ConfigValidationError, match="Invalid ignore pattern"):
            CommitFilter(["(unclosed"])


class TestClassifyCommits:
    """Tests for classify_commits()."""

    def test_drops_ignored_and_keeps_order(self):
        commits = _commits("fix: b", "Merge branch 'x'", "feat: a")

        records = list(classify_commits(commits, CommitFilter()))

        assert [r.subject for r in records] == ["fix: b", "feat: a"]

    def test_is_lazy(self):
        records = classify_commits(_commits("feat: a"), CommitFilter())

        assert next(records).commit_type == CommitType.FEAT
        with pytest.raises(StopIteration):
            next(records)

    def test_without_filter_keeps_everything(self):
        records = list(classify_commits(_commits("wip", "feat: a")))

        assert len(records) == 2

    def test_skips_empty_subject(self):
        commits = [Commit(sha="e" * 40, subject=""), *_commits("fix: b")]

        records = list(classify_commits(commits, CommitFilter()))

        assert [r.subject for r in records] == ["fix: b"]


class TestCalculateBump:
    """Tests for calculate_bump()."""

    def test_feat_fix_and_wip(self):
        """feat + fix with a wip commit infers minor."""
        commits = _commits("feat: add X", "fix: correct Y", "chore: wip")

        records = list(classify_commits(commits, CommitFilter()))

        assert [r.subject for r in records] == ["feat: add X", "fix: correct Y"]
        assert calculate_bump(records) == BumpType.MINOR

    def test_breaking_is_major(self):
        records = list(classify_commits(_commits("fix: a", "feat!: remove old API")))

        assert calculate_bump(records) == BumpType.MAJOR

    def test_other_is_patch(self):
        records = list(classify_commits(_commits("docs: a", "Update README")))

        assert calculate_bump(records) == BumpType.PATCH

    def test_empty_is_none(self):
        assert calculate_bump([]) == BumpType.NONE

    def test_order_independent(self):
        records = list(
            classify_commits(_commits("docs: a", "fix: b", "feat: c", "refactor!: d"))
        )
        expected = calculate_bump(records)

        for permutation in itertools.permutations(records):
            assert calculate_bump(permutation) == expected

    def test_monotonic(self):
        """Adding a commit never lowers the bump."""
        records = list(classify_commits(_commits("docs: a", "fix: b", "feat: c", "feat!: d")))

        for size in range(len(records)):
            for subset in itertools.combinations(records, size):
                base = calculate_bump(subset)
                for extra in records:
                    assert calculate_bump([*subset, extra]) >= base


class TestGroupAndFormat:
    """Tests for changelog helpers."""

    def test_group_commits_by_type_order(self):
        records = list(
            classify_commits(_commits("docs: d", "fix: b", "feat!: c", "feat: a", "fix: e"))
        )

        grouped = group_commits_by_type(records)

        assert list(grouped) == [
            CommitType.FEAT,
            CommitType.FIX,
            CommitType.BREAKING,
            CommitType.OTHER,
        ]
        assert [r.description for r in grouped[CommitType.FIX]] == ["b", "e"]

    def test_group_drops_empty_types(self):
        grouped = group_commits_by_type(list(classify_commits(_commits("fix: b"))))

        assert list(grouped) == [CommitType.FIX]

    def test_format_with_scope(self):
        record = parse_commit(Commit(sha="abc1234def", subject="feat(api): add pagination"))

        assert format_commit_for_changelog(record) == "**api:** add pagination"

    def test_format_without_scope(self):
        record = parse_commit(Commit(sha="abc1234def", subject="fix: crash"))

        assert format_commit_for_changelog(record) == "crash"

    def test_format_other_uses_subject(self):
        record = parse_commit(Commit(sha="abc1234def", subject="docs: update guide"))

        assert format_commit_for_changelog(record) == "docs: update guide"

    def test_format_with_sha(self):
        record = parse_commit(Commit(sha="abc1234def", subject="fix: crash"))

        assert format_commit_for_changelog(record, include_sha=True) == "crash (abc1234)"
