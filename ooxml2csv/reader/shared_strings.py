import logging
from pathlib import Path
from typing import Tuple

from ooxml2csv.reader.xml_tree import XmlNode, iter_nodes

logger = logging.getLogger(__name__)


def string_item_text(node: XmlNode | None) -> str:
    """
    Text of a string item (``<si>`` or an inline ``<is>``).

    Plain items carry one ``<t>`` child. Rich text items split the text into
    runs (``<r><t>..</t></r>``) which are joined in document order.
    """
    if node is None:
        return ""
    if "t" in node.children:
        return node.child_text("t") or ""
    return "".join(run.child_text("t") or "" for run in node.children.get("r", []))


def read_shared_strings(path: str | Path) -> Tuple[str, ...]:
    """
    Load the shared string table.

    The position of a string in the returned tuple is the id cells use to
    reference it. A package without a shared strings part has an empty table.
    """
    path = Path(path)
    if not path.is_file():
        logger.debug(f"No shared strings part at [{path}]")
        return ()

    strings = [string_item_text(node) for _, node in iter_nodes(path, {"si"})]
    logger.debug(f"Loaded {len(strings)} shared strings")
    return tuple(strings)
