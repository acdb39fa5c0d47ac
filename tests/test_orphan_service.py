from pathlib import Path

from conftest import OLD_NS, artifact_names, make_config, touch
import pytest

from core.errors import BaseNameCollisionError, SourceRootNotFoundError
from core.services.orphan_service import OrphanReconciler


def _setup_gallery(tmp_path: Path, config, sources, artifacts):
    src = tmp_path / "src" / "g"
    out = tmp_path / "out" / "g"
    src.mkdir(parents=True, exist_ok=True)
    for name in sources:
        touch(src / name, OLD_NS)
    for base in artifacts:
        for name in artifact_names(base, config):
            touch(out / name, OLD_NS)
    return src, out


def test_deletes_only_orphaned_base_names(tmp_path, config, deleter):
    src, out = _setup_gallery(tmp_path, config, ["a.jpg"], ["a", "b"])
    touch(out / "readme.txt")
    touch(out / "b-notes.webp")

    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, out)

    remaining = {p.name for p in out.iterdir()}
    assert remaining == artifact_names("a", config) | {"readme.txt", "b-notes.webp"}
    assert result.deleted_count == len(config.matrix)
    assert result.orphaned_base_names == ["b"]
    assert result.orphaned_sources == 1


def test_unknown_extension_artifacts_are_left_alone(tmp_path, config, deleter):
    src, out = _setup_gallery(tmp_path, config, ["a.jpg"], [])
    touch(out / "gone-480.avif")  # avif is not in the configured matrix

    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, out)

    assert (out / "gone-480.avif").exists()
    assert result.deleted_count == 0


def test_orphan_count_rounds_up_partial_sets(tmp_path, config, deleter):
    src, out = _setup_gallery(tmp_path, config, [], [])
    touch(out / "x-16.webp")
    touch(out / "y-16.webp")
    touch(out / "y-32.jpg")

    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, out)

    assert result.deleted_count == 3
    assert result.orphaned_sources == 1
    assert result.orphaned_base_names == ["x", "y"]
    assert list(out.iterdir()) == []


def test_missing_output_gallery_is_a_noop(tmp_path, config, deleter):
    src, _ = _setup_gallery(tmp_path, config, ["a.jpg"], [])
    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, tmp_path / "out" / "g")
    assert result.deleted_count == 0


def test_source_extensions_are_case_insensitive(tmp_path, config, deleter):
    src, out = _setup_gallery(tmp_path, config, ["A.JPG", "b.Dng"], ["A", "b"])
    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, out)
    assert result.deleted_count == 0


def test_base_name_collision_is_fatal(tmp_path, config, deleter):
    src, out = _setup_gallery(tmp_path, config, ["img1.jpg", "img1.png"], ["img1"])
    with pytest.raises(BaseNameCollisionError) as exc:
        OrphanReconciler(config, deleter).reconcile_artifacts(src, out)
    assert exc.value.filenames == ["img1.jpg", "img1.png"]


def test_dry_run_plans_without_deleting(tmp_path, deleter):
    config = make_config(tmp_path, dry_run=True)
    src, out = _setup_gallery(tmp_path, config, [], ["b"])

    result = OrphanReconciler(config, deleter).reconcile_artifacts(src, out)

    assert result.deleted_count == len(config.matrix)
    assert {p.name for p in out.iterdir()} == artifact_names("b", config)


def test_removes_output_galleries_without_source(tmp_path, config, deleter):
    (tmp_path / "src" / "x").mkdir(parents=True)
    touch(tmp_path / "out" / "x" / "a-16.webp")
    touch(tmp_path / "out" / "y" / "a-16.webp")
    touch(tmp_path / "out" / "y" / "nested" / "deep.txt")
    touch(tmp_path / "out" / "index.json")

    result = OrphanReconciler(config, deleter).reconcile_galleries(
        tmp_path / "src", tmp_path / "out"
    )

    assert (tmp_path / "out" / "x" / "a-16.webp").exists()
    assert not (tmp_path / "out" / "y").exists()
    assert (tmp_path / "out" / "index.json").exists()
    assert result.removed == [tmp_path / "out" / "y"]
    assert result.kept == ["x"]
    assert result.source_galleries == ["x"]


def test_creates_missing_output_root(tmp_path, config, deleter):
    (tmp_path / "src" / "x").mkdir(parents=True)
    result = OrphanReconciler(config, deleter).reconcile_galleries(
        tmp_path / "src", tmp_path / "out"
    )
    assert (tmp_path / "out").is_dir()
    assert result.removed == []


def test_missing_source_root_is_fatal(tmp_path, deleter):
    config = make_config(tmp_path)
    with pytest.raises(SourceRootNotFoundError):
        OrphanReconciler(config, deleter).reconcile_galleries(tmp_path / "nope", tmp_path / "out")


def test_deletion_failure_propagates(tmp_path, config):
    class BrokenDeleter:
        def delete_file(self, path):
            raise PermissionError(f"denied: {path}")

        def delete_tree(self, path):
            raise PermissionError(f"denied: {path}")

    src, out = _setup_gallery(tmp_path, config, [], ["b"])
    with pytest.raises(PermissionError):
        OrphanReconciler(config, BrokenDeleter()).reconcile_artifacts(src, out)
