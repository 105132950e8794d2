"""Markup element nodes that implement both capability contracts."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping
from xml.etree import ElementTree as ET

from pydantic import BaseModel, Field

from ..errors import ChildLinkError
from .keys import KeyFactory, RandomKeyFactory

ID_ATTRIBUTE = "id"


class MarkupNode(BaseModel):
    """One markup element with its identity kept next to its content.

    ``obj_key`` and ``parent_obj_key`` carry the hierarchy once ``children``
    has been emptied by flattening.
    """

    name: str = Field(..., min_length=1, description="Element tag name.")
    id: str | None = Field(default=None, description="Value of the element's id attribute.")
    attrs: Dict[str, str] = Field(
        default_factory=dict,
        description="Remaining attributes in document order.",
    )
    obj_key: str = Field(..., min_length=1)
    parent_obj_key: str = Field(default="")
    children: List["MarkupNode"] = Field(default_factory=list)

    # Identity contract
    def key(self) -> str:
        return self.obj_key

    def parent_key(self) -> str:
        return self.parent_obj_key

    def append_child(self, child: Any) -> None:
        if child is None:
            raise ChildLinkError("cannot attach a missing child")
        if not isinstance(child, MarkupNode):
            raise ChildLinkError(f"cannot attach {type(child).__name__} to a markup node")
        self.children.append(child)

    # Traversal contract
    def get_children(self) -> List["MarkupNode"]:
        return list(self.children)

    def unlink_children(self) -> None:
        self.children.clear()

    def to_record(self) -> Dict[str, Any]:
        """Return the node as a flat record without its children."""

        return self.model_dump(mode="json", exclude={"children"})

    @classmethod
    def from_record(cls, payload: Mapping[str, Any]) -> "MarkupNode":
        data = dict(payload)
        data.pop("children", None)
        return cls.model_validate(data)


MarkupNode.model_rebuild()


def _from_element(element: ET.Element, parent_key: str, key_factory: KeyFactory) -> MarkupNode:
    attrs = {name: value for name, value in element.attrib.items() if name != ID_ATTRIBUTE}
    node = MarkupNode(
        name=element.tag,
        id=element.attrib.get(ID_ATTRIBUTE),
        attrs=attrs,
        obj_key=key_factory(),
        parent_obj_key=parent_key,
    )
    for child in element:
        if not isinstance(child.tag, str):
            continue
        node.children.append(_from_element(child, node.obj_key, key_factory))
    return node


def parse_markup(text: str, *, key_factory: KeyFactory | None = None) -> MarkupNode:
    """Parse a markup document into a keyed node tree.

    Text content and comments are dropped; every element gets a fresh key and
    its parent's key.
    """

    factory = key_factory or RandomKeyFactory()
    root = ET.fromstring(text.strip())
    return _from_element(root, "", factory)


def _to_element(node: MarkupNode) -> ET.Element:
    attrib: Dict[str, str] = {}
    if node.id:
        attrib[ID_ATTRIBUTE] = node.id
    attrib.update(node.attrs)
    element = ET.Element(node.name, attrib)
    for child in node.children:
        element.append(_to_element(child))
    return element


def render_markup(node: MarkupNode, *, indent: str = "    ") -> str:
    """Render ``node`` and its current children as an indented document."""

    element = _to_element(node)
    ET.indent(element, space=indent)
    return ET.tostring(element, encoding="unicode")


__all__ = ["MarkupNode", "parse_markup", "render_markup", "ID_ATTRIBUTE"]
