"""Tests for the argv builders."""

import pytest

from gitkit.exceptions import CommandArgumentError
from gitkit.git import commands

H1 = "3f786850e387550fdab836ed7e6dc881de23001b"
H2 = "89e6c98d92887913cadf06b2adb97f26cde4849b"


class TestLifecycle:
    def test_init(self):
        assert commands.init() == ["init"]

    def test_init_bare(self):
        assert commands.init(bare=True) == ["init", "--bare"]

    def test_add_defaults_to_everything(self):
        assert commands.add() == ["add", "--", "."]

    def test_add_path_after_separator(self):
        assert commands.add("-weird-name.txt") == ["add", "--", "-weird-name.txt"]

    def test_add_rejects_empty_path(self):
        with pytest.raises(CommandArgumentError):
            commands.add("")

    def test_commit_message_is_one_token(self):
        message = 'fix: bug "quoted" $(rm -rf /) ; echo'
        argv = commands.commit(message)
        assert argv == ["commit", "-m", message]

    def test_commit_amend(self):
        assert commands.commit("msg", amend=True) == ["commit", "-m", "msg", "--amend"]

    @pytest.mark.parametrize("message", ["", "   "])
    def test_commit_rejects_blank_message(self, message):
        with pytest.raises(CommandArgumentError, match="must not be empty"):
            commands.commit(message)

    def test_status_plain(self):
        assert commands.status() == ["status"]

    def test_status_porcelain(self):
        assert commands.status(porcelain=True) == [
            "status",
            "--porcelain=v2",
            "--branch",
        ]

    def test_checkout(self):
        assert commands.checkout("release") == ["checkout", "release"]

    def test_checkout_accepts_revision_expressions(self):
        assert commands.checkout("HEAD~2") == ["checkout", "HEAD~2"]

    @pytest.mark.parametrize("ref", ["", "--force", "-b", "two words", "tab\there"])
    def test_checkout_rejects_unsafe_refs(self, ref):
        with pytest.raises(CommandArgumentError):
            commands.checkout(ref)


class TestBranchCommands:
    def test_create_without_start_point_omits_it(self):
        assert commands.branch_create("feature") == ["branch", "feature"]

    def test_create_with_start_point(self):
        argv = commands.branch_create("feature", "v1.0")
        assert argv == ["branch", "feature", "v1.0"]

    @pytest.mark.parametrize(
        "name",
        ["a..b", "a b", "-x", "x.lock", "x/", "/x", "a//b", "a~1", "a^", "a:b"],
    )
    def test_create_rejects_invalid_names(self, name):
        with pytest.raises(CommandArgumentError):
            commands.branch_create(name)

    def test_create_accepts_slashes(self):
        assert commands.branch_create("feature/login")[-1] == "feature/login"

    def test_delete(self):
        assert commands.branch_delete("old") == ["branch", "-d", "old"]

    def test_force_delete(self):
        assert commands.branch_delete("old", force=True) == ["branch", "-D", "old"]

    def test_list(self):
        assert commands.branch_list() == [
            "branch",
            "--list",
            "-v",
            "--no-abbrev",
            "--no-color",
        ]


class TestTagCommands:
    def test_create_lightweight(self):
        assert commands.tag_create("v1.0") == ["tag", "v1.0"]

    def test_create_annotated_with_start_point(self):
        assert commands.tag_create("v1.0", "abc123", "Release 1.0") == [
            "tag",
            "-m",
            "Release 1.0",
            "v1.0",
            "abc123",
        ]

    def test_empty_message_is_passed_not_omitted(self):
        assert commands.tag_create("v1.0", message="") == ["tag", "-m", "", "v1.0"]

    def test_delete(self):
        assert commands.tag_delete("v1.0") == ["tag", "-d", "v1.0"]

    def test_delete_rejects_option_like_name(self):
        with pytest.raises(CommandArgumentError):
            commands.tag_delete("--all")

    def test_list_uses_conditional_format(self):
        argv = commands.tag_list()
        assert argv[:2] == ["tag", "--list"]
        assert argv[2].startswith("--format=%(refname:strip=2)")
        assert "%(if)%(*objectname)" in argv[2]


class TestReadCommands:
    def test_ls_tree_root(self):
        assert commands.ls_tree("HEAD") == ["ls-tree", "HEAD"]

    def test_ls_tree_subpath_lists_children(self):
        assert commands.ls_tree("main", "src/pkg") == [
            "ls-tree",
            "main",
            "--",
            "src/pkg/",
        ]

    def test_ls_tree_entry(self):
        argv = commands.ls_tree_entry("HEAD", "/src/")
        assert argv == ["ls-tree", "HEAD", "--", "src"]

    def test_ls_tree_entry_rejects_root(self):
        with pytest.raises(CommandArgumentError):
            commands.ls_tree_entry("HEAD", "/")

    def test_show_commit(self):
        assert commands.show_commit("v1.0") == [
            "show",
            "-s",
            "--pretty=raw",
            "--no-color",
            "v1.0",
        ]

    def test_diff_against_parent(self):
        assert commands.diff("bbb", "aaa") == [
            "diff",
            "--full-index",
            "--no-color",
            "--no-ext-diff",
            "-M",
            "aaa",
            "bbb",
        ]

    def test_diff_root_commit_uses_diff_tree(self):
        argv = commands.diff("aaa")
        assert argv[0] == "diff-tree"
        assert "--root" in argv
        assert argv[-1] == "aaa"

    def test_diff_limited_to_path(self):
        assert commands.diff("bbb", "aaa", "README.md")[-2:] == ["--", "README.md"]

    def test_log_minimal(self):
        assert commands.log("HEAD") == [
            "log",
            "-s",
            "--pretty=raw",
            "--no-color",
            "HEAD",
        ]

    def test_log_with_all_options(self):
        argv = commands.log("main", max_count=5, path="src")
        assert argv == [
            "log",
            "-s",
            "--pretty=raw",
            "--no-color",
            "--max-count=5",
            "main",
            "--",
            "src",
        ]

    def test_log_defaults_to_head(self):
        assert commands.log()[-1] == "HEAD"

    def test_log_over_several_revisions(self):
        assert commands.log(H1, H2)[-2:] == [H1, H2]

    def test_log_rejects_option_like_revision(self):
        with pytest.raises(CommandArgumentError):
            commands.log("main", "--all")

    def test_merge_base(self):
        assert commands.merge_base("HEAD", "feature") == [
            "merge-base",
            "--all",
            "HEAD",
            "feature",
        ]

    def test_merge_base_rejects_bad_branch(self):
        with pytest.raises(CommandArgumentError, match="branch"):
            commands.merge_base("HEAD", "-x")

    def test_log_rejects_non_positive_count(self):
        with pytest.raises(CommandArgumentError):
            commands.log("HEAD", max_count=0)

    def test_builders_return_fresh_lists(self):
        first = commands.branch_list()
        first.append("mutated")
        assert "mutated" not in commands.branch_list()
