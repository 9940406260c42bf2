"""Tests for DocumentStore loading, task queries and feature writes."""

import pytest

from conftest import write_yaml
from skill_transfer.core.types import ObjectFeature, Point
from skill_transfer.documents.store import DocumentPaths, DocumentStore
from skill_transfer.documents.tree import MappingNode, to_python
from skill_transfer.errors import LoadError, LoadErrorKind


def _load(ws) -> DocumentStore:
    return DocumentStore.load(ws.config().document_paths)


class TestLoad:
    def test_loads_all_three_documents(self, workspace):
        store = _load(workspace)
        assert isinstance(store.setup, MappingNode)
        assert to_python(store.motion_template)["scope"] == [{"T": "template-var"}]

    def test_missing_document_is_not_found(self, workspace):
        paths = DocumentPaths(
            setup=workspace.setup,
            task=workspace.task,
            motion_template=workspace.root / "nope.yaml",
        )
        with pytest.raises(LoadError) as ei:
            DocumentStore.load(paths)
        assert ei.value.kind is LoadErrorKind.NOT_FOUND
        assert ei.value.path.endswith("nope.yaml")

    def test_malformed_document_is_parse_error(self, workspace):
        workspace.task.write_text("motion-phases: [\n", encoding="utf-8")
        with pytest.raises(LoadError) as ei:
            _load(workspace)
        assert ei.value.kind is LoadErrorKind.PARSE_ERROR
        assert ei.value.path == str(workspace.task)


class TestTaskQueries:
    def test_motion_phase_count_matches_document(self, workspace):
        assert _load(workspace).motion_phase_count() == 2

    def test_motion_phase_count_without_phases(self, workspace):
        write_yaml(workspace.task, {"required-object-features": {}})
        assert _load(workspace).motion_phase_count() == 0

    def test_required_features_in_document_order(self, workspace):
        pairs = [(f.object, f.feature) for f in _load(workspace).required_features()]
        assert pairs == [("cup", "rim"), ("cup", "handle"), ("spoon", "tip")]

    def test_required_features_absent(self, workspace):
        write_yaml(workspace.task, {"motion-phases": []})
        assert _load(workspace).required_features() == []

    def test_required_features_malformed(self, workspace):
        write_yaml(workspace.task, {"required-object-features": {"cup": "rim"}})
        with pytest.raises(LoadError) as ei:
            _load(workspace).required_features()
        assert ei.value.kind is LoadErrorKind.PARSE_ERROR

    def test_phase_lookup_and_bounds(self, workspace):
        store = _load(workspace)
        assert to_python(store.phase(1))["file"] == "pour.yaml"
        with pytest.raises(IndexError):
            store.phase(2)
        with pytest.raises(IndexError):
            store.phase(-1)


class TestWriteFeature:
    def test_write_then_read_back(self, workspace):
        store = _load(workspace)
        store.write_feature(ObjectFeature("cup", "rim", Point(1, 2, 3)))

        assert store.feature_point("cup", "rim") == Point(1.0, 2.0, 3.0)
        assert to_python(store.setup)["object-features"] == {"cup": {"rim": {"vector3": [1, 2, 3]}}}

    def test_overwrite_last_write_wins(self, workspace):
        store = _load(workspace)
        store.write_feature(ObjectFeature("cup", "rim", Point(1, 2, 3)))
        store.write_feature(ObjectFeature("cup", "rim", Point(4, 5, 6)))

        assert store.feature_point("cup", "rim") == Point(4.0, 5.0, 6.0)
        assert list(to_python(store.setup)["object-features"]["cup"]) == ["rim"]

    def test_creates_missing_feature_section(self, workspace):
        write_yaml(workspace.setup, {"tool-grasp": "G1", "target-object-grasp": "G2"})
        store = _load(workspace)
        store.write_feature(ObjectFeature("spoon", "tip", Point(0.5, 0.5, 0.5)))

        setup = to_python(store.setup)
        assert list(setup) == ["tool-grasp", "target-object-grasp", "object-features"]
        assert store.feature_point("spoon", "tip") == Point(0.5, 0.5, 0.5)

    def test_features_never_shrink(self, workspace):
        store = _load(workspace)
        store.write_feature(ObjectFeature("cup", "rim", Point(1, 2, 3)))
        store.write_feature(ObjectFeature("cup", "handle", Point(0, 0, 0)))
        store.write_feature(ObjectFeature("spoon", "tip", Point(9, 9, 9)))

        assert store.feature_point("cup", "rim") == Point(1, 2, 3)
        assert store.feature_point("cup", "handle") == Point(0, 0, 0)
        assert store.feature_point("spoon", "tip") == Point(9, 9, 9)

    def test_write_leaves_other_setup_keys(self, workspace):
        store = _load(workspace)
        before = to_python(store.setup)["tool-grasp"]
        store.write_feature(ObjectFeature("cup", "rim", Point(1, 2, 3)))
        assert to_python(store.setup)["tool-grasp"] == before

    def test_feature_without_point_rejected(self, workspace):
        with pytest.raises(ValueError):
            _load(workspace).write_feature(ObjectFeature("cup", "rim"))

    def test_unknown_feature_reads_none(self, workspace):
        assert _load(workspace).feature_point("cup", "rim") is None

    def test_non_mapping_setup_is_rejected(self, workspace):
        write_yaml(workspace.setup, ["tool-grasp", "target-object-grasp"])
        store = _load(workspace)

        with pytest.raises(LoadError) as ei:
            store.write_feature(ObjectFeature("cup", "rim", Point(1, 2, 3)))
        assert ei.value.kind is LoadErrorKind.PARSE_ERROR
        assert ei.value.path == str(workspace.setup)
        assert to_python(store.setup) == ["tool-grasp", "target-object-grasp"]
