"""Pydantic schemas for templates exchanged with the API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from zip_standardizer.models.template import NodeKind, Template, TemplateNode


class TemplateNodePayload(BaseModel):
    """One node of the expected tree, as sent by the template editor."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    type: NodeKind
    path: str = ""
    parent: str | None = None
    children: list[str] = Field(default_factory=list)


class TemplatePayload(BaseModel):
    """Expected tree: node map keyed by id plus the ordered root ids."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    description: str = ""
    nodes: dict[str, TemplateNodePayload]
    root_nodes: list[str] = Field(alias="rootNodes")

    def to_template(self) -> Template:
        """Build the in-memory template; references are checked by ``validate``."""
        nodes = {
            node_id: TemplateNode(
                id=node_id,
                name=node.name,
                kind=node.type,
                path=node.path or node.name,
                parent_id=node.parent,
                children=list(node.children),
            )
            for node_id, node in self.nodes.items()
        }
        return Template(
            nodes=nodes,
            root_ids=list(self.root_nodes),
            name=self.name,
            description=self.description,
        )

    @classmethod
    def from_template(cls, template: Template) -> TemplatePayload:
        return cls(
            name=template.name,
            description=template.description,
            nodes={
                node_id: TemplateNodePayload(
                    id=node.id,
                    name=node.name,
                    type=node.kind,
                    path=node.path,
                    parent=node.parent_id,
                    children=list(node.children),
                )
                for node_id, node in template.nodes.items()
            },
            root_nodes=list(template.root_ids),
        )
