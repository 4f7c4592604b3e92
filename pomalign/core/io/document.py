"""
Format-preserving view of a POM file.

The file is split into three regions:
  intro   everything before the root element (declaration, comments, doctype)
  body    the root element itself
  outtro  everything after the root element's closing tag

intro/outtro are kept as raw text. The body is parsed with lxml (comments,
whitespace and CDATA retained); when nothing was projected onto it the original
body text is re-emitted unchanged, otherwise lxml serialises it and the original
line separator is restored.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from lxml import etree

from pomalign.core.manifest import TOOL_NAME, manifest_information

PROVENANCE_MARKER = f"Modified by {TOOL_NAME}"

_ENCODING_RE = re.compile(rb"""^<\?xml[^>]*encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")
_PROVENANCE_RE = re.compile(re.escape(PROVENANCE_MARKER) + r"[^\r\n]*")
_UTF8_BOM = b"\xef\xbb\xbf"


def provenance_comment() -> str:
    return f"Modified by {manifest_information()}"


def determine_eol(text: str) -> str:
    nl = text.find("\n")
    if nl < 0:
        return "\r" if "\r" in text else "\n"
    if nl > 0 and text[nl - 1] == "\r":
        return "\r\n"
    return "\n"


def _sniff_encoding(raw: bytes) -> str:
    m = _ENCODING_RE.match(raw[:256])
    if m:
        return m.group(1).decode("ascii")
    return "utf-8"


def _skip_markup(text: str, i: int) -> int:
    """Return the index just past the declaration/comment/doctype starting at i."""
    if text.startswith("<?", i):
        return text.index("?>", i) + 2
    if text.startswith("<!--", i):
        return text.index("-->", i) + 3
    # <!DOCTYPE ...>, possibly with an internal subset
    gt = text.index(">", i)
    bracket = text.find("[", i, gt)
    if bracket >= 0:
        close = text.index("]", bracket)
        return text.index(">", close) + 1
    return gt + 1


def split_document(text: str, root) -> Tuple[str, str, str]:
    i = 0
    while True:
        start = text.find("<", i)
        if start < 0:
            raise ValueError("No root element found")
        if text.startswith("<?", start) or text.startswith("<!", start):
            i = _skip_markup(text, start)
            continue
        break

    qname = etree.QName(root).localname
    if root.prefix:
        qname = f"{root.prefix}:{qname}"

    close = text.rfind(f"</{qname}")
    if close > start:
        end = text.index(">", close) + 1
    else:
        end = text.index("/>", start) + 2

    return text[:start], text[start:end], text[end:]


def with_provenance(outtro: str, eol: str, comment: Optional[str] = None) -> str:
    """
    Insert (or refresh) the provenance comment after the root element. An
    earlier comment is detected by PROVENANCE_MARKER and replaced in place.
    """
    comment = comment or provenance_comment()
    if PROVENANCE_MARKER in outtro:
        return _PROVENANCE_RE.sub(lambda _m: comment, outtro, count=1)

    block = f"{eol}<!--{eol}{comment}{eol}-->{eol}"
    if not outtro.strip():
        return block
    return outtro.rstrip("\r\n") + block


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        remove_blank_text=False,
        remove_comments=False,
        remove_pis=False,
        strip_cdata=False,
        resolve_entities=False,
        no_network=True,
    )


@dataclass
class PomDocument:
    path: Path
    encoding: str
    bom: bytes
    eol: str
    root: object
    intro: str
    body: str
    outtro: str

    @property
    def text(self) -> str:
        return self.intro + self.body + self.outtro

    @classmethod
    def parse_bytes(cls, raw: bytes, path: Path) -> "PomDocument":
        bom = _UTF8_BOM if raw.startswith(_UTF8_BOM) else b""
        payload = raw[len(bom):]
        encoding = _sniff_encoding(payload)
        text = payload.decode(encoding)

        root = etree.fromstring(payload, _parser())
        intro, body, outtro = split_document(text, root)

        return cls(
            path=path,
            encoding=encoding,
            bom=bom,
            eol=determine_eol(text),
            root=root,
            intro=intro,
            body=body,
            outtro=outtro,
        )

    @classmethod
    def load(cls, path: Path) -> "PomDocument":
        return cls.parse_bytes(Path(path).read_bytes(), Path(path))

    def render(self, *, changed: bool, provenance: bool = False) -> str:
        body = self.body
        if changed:
            body = etree.tostring(self.root, encoding="unicode", with_tail=False)
            if self.eol != "\n":
                body = body.replace("\n", self.eol)

        outtro = with_provenance(self.outtro, self.eol) if provenance else self.outtro
        return self.intro + body + outtro

    def encode(self, text: str) -> bytes:
        return self.bom + text.encode(self.encoding, errors="xmlcharrefreplace")
