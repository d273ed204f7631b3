from __future__ import annotations

import pytest

from monoguard.contract.errors import ManifestParseError
from monoguard.parse.workspace import (
    WorkspaceDeclaration,
    detect_workspace,
    extract_workspace_globs,
    parse_pnpm_workspace,
)


def test_pnpm_workspace_yaml_sets_type_and_globs() -> None:
    files = {"pnpm-workspace.yaml": "packages:\n  - 'packages/*'\n  - '!packages/legacy'\n"}

    declaration = detect_workspace(files, {"name": "root"})

    assert declaration.workspace_type == "pnpm"
    assert declaration.globs == ("packages/*", "!packages/legacy")


def test_malformed_pnpm_workspace_is_a_parse_error() -> None:
    files = {"pnpm-workspace.yaml": "packages: [unclosed\n"}

    with pytest.raises(ManifestParseError) as exc_info:
        detect_workspace(files, None)

    assert list(exc_info.value.failures) == ["pnpm-workspace.yaml"]


def test_parse_pnpm_workspace_rejects_non_list_packages() -> None:
    with pytest.raises(ValueError, match="list of strings"):
        parse_pnpm_workspace("packages: packages/*\n")


def test_parse_pnpm_workspace_empty_document() -> None:
    assert parse_pnpm_workspace("") == []
    assert parse_pnpm_workspace("# only a comment\n") == []


def test_nx_json_marks_nx_workspace() -> None:
    declaration = detect_workspace(
        {"nx.json": "{}", "yarn.lock": ""},
        {"workspaces": ["apps/*", "libs/*"]},
    )

    assert declaration.workspace_type == "nx"
    assert declaration.globs == ("apps/*", "libs/*")


def test_package_manager_field_wins_over_lockfiles() -> None:
    declaration = detect_workspace(
        {"package-lock.json": ""},
        {"packageManager": "yarn@4.1.0", "workspaces": ["packages/*"]},
    )

    assert declaration.workspace_type == "yarn"


def test_single_lockfile_decides_type() -> None:
    declaration = detect_workspace({"package-lock.json": ""}, {"workspaces": ["packages/*"]})

    assert declaration.workspace_type == "npm"


def test_conflicting_lockfiles_are_unknown_not_failure() -> None:
    declaration = detect_workspace(
        {"package-lock.json": "", "yarn.lock": ""},
        {"workspaces": ["packages/*"]},
    )

    assert declaration.workspace_type == "unknown"


def test_nohoist_object_form_implies_yarn() -> None:
    manifest = {"workspaces": {"packages": ["packages/*"], "nohoist": ["**/react-native"]}}

    assert extract_workspace_globs(manifest) == (["packages/*"], True)
    assert detect_workspace({}, manifest).workspace_type == "yarn"


def test_invalid_workspaces_field_is_a_warning() -> None:
    declaration = detect_workspace({}, {"workspaces": "packages/*"})

    assert declaration.globs == ()
    assert [w.code for w in declaration.warnings] == ["INVALID_WORKSPACES_FIELD"]


def test_lerna_packages_contribute_globs_without_duplicates() -> None:
    declaration = detect_workspace(
        {"lerna.json": '{"packages": ["packages/*", "tools/*"]}'},
        {"workspaces": ["packages/*"]},
    )

    assert declaration.globs == ("packages/*", "tools/*")


def test_malformed_lerna_json_is_a_parse_error() -> None:
    with pytest.raises(ManifestParseError):
        detect_workspace({"lerna.json": "{oops"}, None)


def test_membership_globs_support_negation() -> None:
    declaration = WorkspaceDeclaration(
        workspace_type="npm", globs=("packages/*", "!packages/legacy")
    )

    assert declaration.includes("packages/ui")
    assert not declaration.includes("packages/legacy")
    assert not declaration.includes("packages/ui/nested")
    assert not declaration.includes("apps/web")


def test_membership_glob_may_name_the_manifest_file() -> None:
    declaration = WorkspaceDeclaration(globs=("packages/*/package.json",))

    assert declaration.includes("packages/ui")


def test_declaration_without_globs_includes_everything() -> None:
    declaration = WorkspaceDeclaration()

    assert not declaration.has_membership
    assert declaration.includes("anything/at/all")
