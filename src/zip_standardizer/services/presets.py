"""Build templates from the built-in project layouts."""

from __future__ import annotations

from zip_standardizer.constants.presets import PRESET_LAYOUTS, PresetKey
from zip_standardizer.models.template import NodeKind, Template

ROOT_NODE_ID = "root"
ROOT_NODE_NAME = "Project"


def list_presets() -> list[str]:
    return [key.value for key in PresetKey]


def build_preset_template(key: PresetKey | str) -> Template:
    """Return a fresh template for preset ``key``.

    Intermediate directories named in a layout path are created once and
    shared by every path going through them.

    Raises:
        ValueError: If ``key`` is not a known preset.
    """
    preset = PresetKey(key)
    template = Template(name=preset.value, description=f"Built-in {preset.value} layout")
    template.add_node(ROOT_NODE_NAME, NodeKind.DIRECTORY, node_id=ROOT_NODE_ID)
    directories: dict[str, str] = {"": ROOT_NODE_ID}

    def _ensure_directory(path: str) -> str:
        if path in directories:
            return directories[path]
        parent_path, _, name = path.rpartition("/")
        parent_id = _ensure_directory(parent_path)
        node = template.add_node(name, NodeKind.DIRECTORY, parent_id=parent_id, node_id=path)
        directories[path] = node.id
        return node.id

    for path, kind in PRESET_LAYOUTS[preset]:
        if kind is NodeKind.DIRECTORY:
            _ensure_directory(path)
            continue
        parent_path, _, name = path.rpartition("/")
        template.add_node(name, kind, parent_id=_ensure_directory(parent_path), node_id=path)

    return template
