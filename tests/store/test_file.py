"""Tests for the YAML file store."""

from pathlib import Path

import pytest
import yaml

from image_import.exceptions import InputException
from image_import.manifest import IMAGE_FINALIZER, ImageState, ManagedImage
from image_import.store import YamlFileStore


async def test_add_and_load(tmp_path: Path, image: ManagedImage) -> None:
    """Test documents written by one store are read by another."""
    store = YamlFileStore(tmp_path)
    await store.add(image)

    path = tmp_path / "default" / "boot-img.yaml"
    assert store.path_for(image.resource_id) == path
    assert yaml.safe_load(path.read_text()) == image.to_doc()

    other = YamlFileStore(tmp_path)
    await other.load()
    assert other.list_objects() == [image]


async def test_persist_replaces_document(tmp_path: Path, image: ManagedImage) -> None:
    """Test persisting rewrites the document in place."""
    store = YamlFileStore(tmp_path)
    await store.add(image)

    obj = store.get_object(image.resource_id)
    assert obj is not None
    obj.status.ready = True
    obj.status.image_id = "image-1"
    obj.status.image_state = ImageState.AVAILABLE
    await store.persist(obj)

    doc = yaml.safe_load(store.path_for(image.resource_id).read_text())
    assert doc["status"] == {
        "ready": True,
        "imageID": "image-1",
        "imageState": "available",
        "jobID": "",
    }
    assert [p.name for p in (tmp_path / "default").iterdir()] == ["boot-img.yaml"]


async def test_deletion_removes_document(tmp_path: Path, image: ManagedImage) -> None:
    """Test the document is removed along with the object."""
    image.add_finalizer(IMAGE_FINALIZER)
    store = YamlFileStore(tmp_path)
    await store.add(image)
    path = store.path_for(image.resource_id)

    await store.request_deletion(image.resource_id)
    assert path.exists()
    doc = yaml.safe_load(path.read_text())
    assert doc["metadata"]["deletionTimestamp"]

    obj = store.get_object(image.resource_id)
    assert obj is not None
    obj.remove_finalizer(IMAGE_FINALIZER)
    await store.persist(obj)
    assert not path.exists()
    assert store.get_object(image.resource_id) is None


async def test_load_invalid_document(tmp_path: Path) -> None:
    """Test loading a document that is not a managed image."""
    (tmp_path / "default").mkdir()
    (tmp_path / "default" / "bad.yaml").write_text("- a\n- b\n")
    store = YamlFileStore(tmp_path)
    with pytest.raises(InputException, match="is not a mapping"):
        await store.load()
