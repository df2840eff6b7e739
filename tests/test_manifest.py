import pytest

from conftest import write_manifest
from localbuild.manifest import (
    ManifestNotFound,
    ManifestParseError,
    SubManifestNotFound,
    load_manifest,
    local_entries,
    parse_locator,
    resolve_local_packages,
)


def test_parse_locator():
    assert parse_locator("file:../lib") == ("file", "../lib")
    assert parse_locator("git+https://example.com/x.git") == ("git+https", "//example.com/x.git")
    assert parse_locator("^1.2.3") is None
    assert parse_locator("file:") is None
    assert parse_locator(None) is None


def test_local_entries_filters_and_later_groups_win():
    manifest = {
        "dependencies": {
            "a": "file:./a",
            "b": "^2.0.0",
            "c": "file:./c-old",
            "d": "npm:other@1.0.0",
        },
        "devDependencies": {
            "c": "file:./c-new",
            "e": "link:./e",
        },
    }
    entries = [(entry.name, path) for entry, path in local_entries(manifest)]
    assert entries == [("a", "./a"), ("c", "./c-new")]


def test_local_entries_later_group_can_drop_local_entry():
    manifest = {
        "dependencies": {"a": "file:./a"},
        "devDependencies": {"a": "^1.0.0"},
    }
    assert list(local_entries(manifest)) == []


def test_local_entries_respects_group_order_and_ignores_bad_groups():
    manifest = {
        "dependencies": {"a": "file:./one"},
        "peerDependencies": {"a": "file:./two"},
        "optionalDependencies": ["not", "a", "mapping"],
    }
    entries = [path for _entry, path in local_entries(manifest, ["peerDependencies", "dependencies", "optionalDependencies"])]
    assert entries == ["./one"]


def test_resolve_local_packages(project):
    packages = list(resolve_local_packages(project / "package.json"))

    assert [p.name for p in packages] == ["sub1", "sub2"]
    assert packages[0].directory == (project / "sub1").resolve()
    assert packages[1].directory == (project / "sub2").resolve()
    assert "prepare" in packages[0].scripts


def test_resolve_only_requested_groups(project):
    packages = list(resolve_local_packages(project / "package.json", ["devDependencies"]))
    assert [p.name for p in packages] == ["sub2"]


def test_resolve_relative_to_manifest_directory(tmp_path, monkeypatch):
    write_manifest(tmp_path / "libs" / "util", {"scripts": {"prepare": "true"}})
    write_manifest(tmp_path / "app", {"dependencies": {"util": "file:../libs/util"}})
    monkeypatch.chdir(tmp_path / "libs")

    [pkg] = resolve_local_packages(tmp_path / "app" / "package.json")
    assert pkg.directory == (tmp_path / "libs" / "util").resolve()


def test_missing_root_manifest(tmp_path):
    with pytest.raises(ManifestNotFound):
        list(resolve_local_packages(tmp_path / "package.json"))


def test_unparsable_root_manifest(tmp_path):
    (tmp_path / "package.json").write_text("{ not json", encoding="utf-8")
    with pytest.raises(ManifestParseError):
        load_manifest(tmp_path / "package.json")


def test_root_manifest_must_be_object(tmp_path):
    (tmp_path / "package.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ManifestParseError):
        load_manifest(tmp_path / "package.json")


def test_missing_sub_manifest_is_skipped(tmp_path, capsys):
    write_manifest(tmp_path / "present", {"scripts": {"prepare": "true"}})
    (tmp_path / "absent").mkdir()
    write_manifest(tmp_path, {"dependencies": {"absent": "file:absent", "present": "file:present"}})

    packages = list(resolve_local_packages(tmp_path / "package.json"))

    assert [p.name for p in packages] == ["present"]
    assert "Local 'absent' has no package.json" in capsys.readouterr().out


def test_missing_sub_manifest_strict(tmp_path):
    write_manifest(tmp_path, {"dependencies": {"absent": "file:absent"}})
    with pytest.raises(SubManifestNotFound) as exc:
        list(resolve_local_packages(tmp_path / "package.json", strict=True))
    assert exc.value.name == "absent"


def test_sub_manifest_without_scripts(tmp_path):
    write_manifest(tmp_path / "bare", {"name": "bare"})
    write_manifest(tmp_path, {"dependencies": {"bare": "file:bare"}})

    [pkg] = resolve_local_packages(tmp_path / "package.json")
    assert pkg.scripts == {}
    assert not pkg.has_script("prepare")
    assert pkg.has_script("install")


def test_non_utf8_manifest(tmp_path):
    (tmp_path / "package.json").write_bytes(b'{"name": "\xff"}')
    with pytest.raises(ManifestParseError) as exc:
        load_manifest(tmp_path / "package.json")
    assert "UTF-8" in str(exc.value)


def test_tarball_locator_is_skipped(tmp_path, capsys):
    (tmp_path / "pkg.tgz").write_bytes(b"not a directory")
    write_manifest(tmp_path / "dir", {"scripts": {"prepare": "true"}})
    write_manifest(tmp_path, {"dependencies": {"tar": "file:./pkg.tgz", "dir": "file:./dir"}})

    packages = list(resolve_local_packages(tmp_path / "package.json"))

    assert [p.name for p in packages] == ["dir"]
    assert "Local 'tar' has no package.json" in capsys.readouterr().out


def test_tarball_locator_strict(tmp_path):
    (tmp_path / "pkg.tgz").write_bytes(b"not a directory")
    write_manifest(tmp_path, {"dependencies": {"tar": "file:./pkg.tgz"}})

    with pytest.raises(SubManifestNotFound):
        list(resolve_local_packages(tmp_path / "package.json", strict=True))


def test_unparsable_sub_manifest_is_fatal(tmp_path):
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "package.json").write_text("{ nope", encoding="utf-8")
    write_manifest(tmp_path, {"dependencies": {"broken": "file:broken"}})

    with pytest.raises(ManifestParseError):
        list(resolve_local_packages(tmp_path / "package.json"))
