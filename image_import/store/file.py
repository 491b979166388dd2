"""Module for a store backed by a directory of YAML documents.

Each managed image is kept in `<root>/<namespace>/<name>.yaml`. Writes go to
a temporary file in the same directory which then atomically replaces the
document, so readers never observe a partially written object.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os
import yaml

from image_import.exceptions import InputException
from image_import.manifest import ManagedImage, NamedResource

from .in_memory import InMemoryStore

_LOGGER = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".yaml"
TEMP_SUFFIX = ".tmp"


class YamlFileStore(InMemoryStore):
    """Store that mirrors managed images to a directory of YAML documents."""

    def __init__(self, root: Path) -> None:
        """Initialize the store rooted at the specified directory."""
        super().__init__()
        self._root = root

    @property
    def root(self) -> Path:
        """The directory holding the documents."""
        return self._root

    def path_for(self, resource_id: NamedResource) -> Path:
        """Return the path of the document for the resource."""
        return self._root / (resource_id.namespace or "") / (
            resource_id.name + DOCUMENT_SUFFIX
        )

    async def load(self) -> None:
        """Read all documents under the root directory into the store."""
        for path in sorted(self._root.glob(f"*/*{DOCUMENT_SUFFIX}")):
            async with aiofiles.open(path, mode="r") as f:
                content = await f.read()
            try:
                doc = yaml.safe_load(content)
            except yaml.YAMLError as err:
                raise InputException(f"Unable to parse document {path}: {err}") from err
            if not isinstance(doc, dict):
                raise InputException(f"Document {path} is not a mapping")
            obj = ManagedImage.parse_doc(doc)
            _LOGGER.debug("Loaded %s from %s", obj.resource_id, path)
            super().add_object(obj)

    async def add(self, obj: ManagedImage) -> None:
        """Add a managed image to the store and write its document."""
        await self._write(obj)
        self.add_object(obj)

    async def _write(self, obj: ManagedImage) -> None:
        path = self.path_for(obj.resource_id)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        temp_path = path.with_name(path.name + TEMP_SUFFIX)
        content = yaml.dump(obj.to_doc(), sort_keys=False, explicit_start=True)
        async with aiofiles.open(temp_path, mode="w") as f:
            await f.write(content)
        await aiofiles.os.replace(temp_path, path)
        _LOGGER.debug("Wrote %s to %s", obj.resource_id, path)

    async def _remove(self, resource_id: NamedResource) -> None:
        path = self.path_for(resource_id)
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)
            _LOGGER.debug("Removed %s", path)
