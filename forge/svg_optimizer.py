"""
Structural SVG optimizer.

Wraps ElementTree with a small set of svgo-style passes:
- comment, processing-instruction and doctype removal (dropped by the parser)
- <metadata> and editor-namespace (Inkscape, Sodipodi, Illustrator...) removal
- whitespace trimming outside text content
- empty container removal and attribute-less <g> collapsing
- viewBox synthesis from width/height, then width/height removal
- duplicate id dropping and unreferenced id removal

Passes repeat until the serialized output stops changing or `max_passes`
is reached, so optimizing already-optimized output is a no-op.
"""

import io
import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

EDITOR_NAMESPACES = {
    "http://www.inkscape.org/namespaces/inkscape",
    "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
    "http://ns.adobe.com/AdobeIllustrator/10.0/",
    "http://ns.adobe.com/AdobeSVGViewerExtensions/3.0/",
    "http://ns.adobe.com/Extensibility/1.0/",
    "http://ns.adobe.com/Flows/1.0/",
    "http://ns.adobe.com/GenericCustomNamespace/1.0/",
    "http://ns.adobe.com/Graphs/1.0/",
    "http://ns.adobe.com/ImageReplacement/1.0/",
    "http://ns.adobe.com/SaveForWeb/1.0/",
    "http://ns.adobe.com/Variables/1.0/",
    "http://ns.adobe.com/XPath/1.0/",
    "http://www.bohemiancoding.com/sketch/ns",
    "http://purl.org/dc/elements/1.1/",
    "http://creativecommons.org/ns#",
    "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "http://www.serif.com/",
    "http://www.vector.evaxdesign.sk",
}

TEXT_CONTENT_TAGS = {"text", "tspan", "textPath", "style", "script", "title", "desc"}
REMOVABLE_WHEN_EMPTY = {"g", "defs"}
DYNAMIC_TAGS = {"style", "script", "animate", "set", "animateTransform", "animateMotion"}

DEFAULT_MAX_PASSES = 10

_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)
_URL_REF_RE = re.compile(r"url\(\s*['\"]?#([^'\")\s]+)")
_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")


class SvgOptimizationError(ValueError):
    """Raised when the input is not a usable SVG document."""


def _split_tag(tag: str) -> Tuple[Optional[str], str]:
    if tag.startswith("{"):
        uri, local = tag[1:].split("}", 1)
        return uri, local
    return None, tag


def _local(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return _split_tag(tag)[1]


def _format_number(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def _parse(text: str) -> Tuple[ET.Element, List[Tuple[str, str]]]:
    if "<!ENTITY" in text:
        raise SvgOptimizationError("SVG documents declaring entities are not accepted")
    data = _XML_DECL_RE.sub("", text, count=1).encode("utf-8")

    namespaces: List[Tuple[str, str]] = []
    root: Optional[ET.Element] = None
    try:
        for event, item in ET.iterparse(io.BytesIO(data), events=("start-ns", "start")):
            if event == "start-ns":
                namespaces.append(item)
            elif root is None:
                root = item
    except ET.ParseError as e:
        raise SvgOptimizationError(f"Malformed SVG: {e}") from e

    if root is None or _local(root.tag) != "svg":
        raise SvgOptimizationError("Document root is not <svg>")
    return root, namespaces


class SvgOptimizer:
    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES):
        self.max_passes = max(1, max_passes)

    def optimize(self, text: str) -> str:
        """Run passes until the output is stable or the ceiling is hit."""
        current = text
        for pass_number in range(1, self.max_passes + 1):
            optimized = self.optimize_once(current)
            if optimized == current:
                logger.debug("SVG stable after %d pass(es)", pass_number)
                return optimized
            current = optimized
        logger.debug("SVG pass ceiling (%d) reached", self.max_passes)
        return current

    def optimize_once(self, text: str) -> str:
        root, namespaces = _parse(text)
        self._qualify(root)
        self._strip_editor_data(root)
        self._trim_whitespace(root)
        self._collapse_groups(root)
        self._remove_empty_containers(root)
        self._normalize_dimensions(root)
        self._cleanup_ids(root)
        return self._serialize(root, namespaces)

    # ── passes ────────────────────────────────────────────────

    @staticmethod
    def _qualify(root: ET.Element) -> None:
        """Put un-namespaced elements into the SVG namespace."""
        for elem in root.iter():
            if isinstance(elem.tag, str) and not elem.tag.startswith("{"):
                elem.tag = f"{{{SVG_NS}}}{elem.tag}"

    @staticmethod
    def _strip_editor_data(root: ET.Element) -> None:
        for parent in list(root.iter()):
            for child in list(parent):
                uri, local = _split_tag(child.tag) if isinstance(child.tag, str) else (None, "")
                if uri in EDITOR_NAMESPACES or (uri == SVG_NS and local == "metadata"):
                    parent.remove(child)
        for elem in root.iter():
            for key in list(elem.attrib):
                uri, _ = _split_tag(key)
                if uri in EDITOR_NAMESPACES:
                    del elem.attrib[key]

    @staticmethod
    def _trim_whitespace(root: ET.Element) -> None:
        preserve: Set[int] = set()
        for elem in root.iter():
            if _local(elem.tag) in TEXT_CONTENT_TAGS:
                preserve.update(id(e) for e in elem.iter())

        def trim(elem: ET.Element, parent_preserved: bool) -> None:
            keep = id(elem) in preserve
            if not keep and elem.text is not None and not elem.text.strip():
                elem.text = None
            if not parent_preserved and elem.tail is not None and not elem.tail.strip():
                elem.tail = None
            for key, value in elem.attrib.items():
                stripped = value.strip()
                if stripped != value:
                    elem.attrib[key] = stripped
            for child in elem:
                trim(child, keep)

        trim(root, False)

    @staticmethod
    def _collapse_groups(root: ET.Element) -> None:
        """Replace attribute-less <g> elements with their children."""
        changed = True
        while changed:
            changed = False
            for parent in list(root.iter()):
                for index, child in enumerate(list(parent)):
                    if _local(child.tag) == "g" and not child.attrib and len(child) and not (child.text or "").strip():
                        parent.remove(child)
                        for offset, grandchild in enumerate(list(child)):
                            parent.insert(index + offset, grandchild)
                        changed = True
                        break
                if changed:
                    break

    @staticmethod
    def _remove_empty_containers(root: ET.Element) -> None:
        changed = True
        while changed:
            changed = False
            for parent in list(root.iter()):
                for child in list(parent):
                    if (
                        _local(child.tag) in REMOVABLE_WHEN_EMPTY
                        and len(child) == 0
                        and not (child.text or "").strip()
                        and "filter" not in child.attrib
                    ):
                        parent.remove(child)
                        changed = True

    @staticmethod
    def _normalize_dimensions(root: ET.Element) -> None:
        width = root.attrib.get("width")
        height = root.attrib.get("height")
        if "viewBox" not in root.attrib and width and height:
            w = _LENGTH_RE.match(width)
            h = _LENGTH_RE.match(height)
            if not (w and h):
                return
            root.attrib["viewBox"] = (
                f"0 0 {_format_number(float(w.group(1)))} {_format_number(float(h.group(1)))}"
            )
        if "viewBox" in root.attrib:
            root.attrib.pop("width", None)
            root.attrib.pop("height", None)

    @staticmethod
    def _cleanup_ids(root: ET.Element) -> None:
        seen: Set[str] = set()
        for elem in root.iter():
            elem_id = elem.attrib.get("id")
            if elem_id is None:
                continue
            if elem_id in seen:
                del elem.attrib["id"]
            else:
                seen.add(elem_id)

        if any(_local(e.tag) in DYNAMIC_TAGS for e in root.iter()):
            return

        referenced: Set[str] = set()
        for elem in root.iter():
            for key, value in elem.attrib.items():
                referenced.update(_URL_REF_RE.findall(value))
                if _local(key) == "href" and value.startswith("#"):
                    referenced.add(value[1:])
        for elem in root.iter():
            elem_id = elem.attrib.get("id")
            if elem_id is not None and elem_id not in referenced:
                del elem.attrib["id"]

    # ── output ────────────────────────────────────────────────

    @staticmethod
    def _serialize(root: ET.Element, namespaces: List[Tuple[str, str]]) -> str:
        ET.register_namespace("", SVG_NS)
        ET.register_namespace("xlink", XLINK_NS)
        prefixes: Dict[str, str] = {}
        for prefix, uri in namespaces:
            if uri in EDITOR_NAMESPACES or uri in (SVG_NS, XLINK_NS) or not prefix:
                continue
            prefixes.setdefault(uri, prefix)
        for uri, prefix in prefixes.items():
            try:
                ET.register_namespace(prefix, uri)
            except ValueError:
                logger.debug("Cannot keep namespace prefix %r for %s", prefix, uri)
        return ET.tostring(root, encoding="unicode")
