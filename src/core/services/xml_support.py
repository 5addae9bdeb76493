"""Helpers de XML compartidos por metadata y POM.

Los documentos Maven suelen declarar `xmlns="http://maven.apache.org/POM/4.0.0"`;
aquí se quita el namespace de cada tag para poder buscar por nombre local.
"""

from __future__ import annotations

from xml.etree import ElementTree

from core.domain.errors import ParseError


def local_name(tag: object) -> str:
    # Comentarios/processing instructions tienen tags no-string.
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def parse_xml(raw: bytes | str, *, source: str | None = None) -> ElementTree.Element:
    """Parsea y devuelve la raíz con los namespaces eliminados."""

    try:
        root = ElementTree.fromstring(raw)
    except ElementTree.ParseError as exc:
        raise ParseError(f"Malformed XML ({exc})", source=source) from exc

    for el in root.iter():
        if isinstance(el.tag, str):
            el.tag = local_name(el.tag)
    return root


def child(el: ElementTree.Element | None, name: str) -> ElementTree.Element | None:
    if el is None:
        return None
    return el.find(name)


def child_text(el: ElementTree.Element | None, name: str) -> str | None:
    """Texto (strip) de un hijo directo; `None` si falta o está vacío."""

    found = child(el, name)
    if found is None or found.text is None:
        return None
    text = found.text.strip()
    return text or None
