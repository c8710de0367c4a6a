"""Tests for ProjectCollection.filter_projects."""

from __future__ import annotations

import pytest

from conftest import make_module, make_project
from solgen.collection import ProjectCollection
from solgen.config import Configuration


def _collection(config: Configuration) -> ProjectCollection:
    collection = ProjectCollection(config)
    collection.populate([
        make_module(
            "m",
            make_project("lib/core"),
            make_project("lib/tools", options={"dev_only": True}),
            make_project("test/core", type="test_application"),
            make_project("lib/old", type="disabled"),
            make_project("app", type="application"),
        )
    ])
    return collection


class TestFilterProjects:
    @pytest.mark.unit
    def test_dev_build_keeps_dev_projects(self, config: Configuration):
        collection = _collection(config)
        result = collection.filter_projects()
        assert result.success
        assert result.removed == 1
        assert collection.names() == ["lib/core", "lib/tools", "test/core", "app"]

    @pytest.mark.unit
    def test_non_dev_build_drops_dev_and_tests(self, tmp_path):
        collection = _collection(Configuration(output_dir=tmp_path, flag_dev_build=False))
        result = collection.filter_projects()
        assert result.removed == 3
        assert collection.names() == ["lib/core", "app"]

    @pytest.mark.unit
    def test_index_rebuilt(self, tmp_path):
        collection = _collection(Configuration(output_dir=tmp_path, flag_dev_build=False))
        collection.filter_projects()
        assert collection.find_project("lib/tools") is None
        assert collection.find_project("lib/old") is None
        assert collection.find_project("app") is not None

    @pytest.mark.unit
    def test_idempotent(self, tmp_path):
        collection = _collection(Configuration(output_dir=tmp_path, flag_dev_build=False))
        collection.filter_projects()
        names = collection.names()
        second = collection.filter_projects()
        assert second.removed == 0
        assert collection.names() == names
