"""Tagged kernel signature extraction from CUDA source text.

A kernel is marked for extraction by placing a tag marker (``KERNEL_TAG`` by
default) on a line before its declaration. The scanner is a small explicit
state machine driven line by line:

``IDLE``
    Waiting for a tag line.
``ARMED``
    A tag was seen; watching for a template introducer and for the
    declaration keyword (``__global__``).
``CAPTURING``
    Accumulating declaration text until the outermost parameter list closes.

Line comments are stripped before any matching, so a tag inside a ``//``
comment does not arm the scanner. Declarations that never complete are
dropped with a warning; scanning always continues.

Functions
---------
extract_signatures
    Scan a whole source text and return its kernel signatures in order.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Optional

from attrs import define, field

from kernel_scan.data.models import KernelSignature, SourceFile

logger = logging.getLogger(__name__)

_LINE_COMMENT = re.compile(r"//.*")
_WHITESPACE = re.compile(r"\s+")
_TRAILING_IDENT = re.compile(r"([A-Za-z_][A-Za-z0-9_:]*)\s*$")


@define(kw_only=True, frozen=True)
class SignatureMarkers:
    """Textual markers recognized by the signature scanner.

    Parameters
    ----------
    tag : str
        Marker placed on the line(s) before a kernel declaration.
    declaration : str
        Keyword that starts the declaration to capture.
    template_pattern : str
        Regex for a template introducer seen between tag and declaration.
    attributes : tuple of str
        Attribute annotations ``name(...)`` removed from the captured text.
    """

    tag: str = "KERNEL_TAG"
    declaration: str = "__global__"
    template_pattern: str = r"template\s*<"
    attributes: tuple[str, ...] = field(default=("__launch_bounds__",), converter=tuple)

    def template_regex(self) -> re.Pattern[str]:
        return re.compile(self.template_pattern)

    def attribute_regex(self) -> Optional[re.Pattern[str]]:
        """Regex matching a configured attribute name up to its opening parenthesis."""

        if not self.attributes:
            return None
        names = "|".join(re.escape(a) for a in self.attributes)
        return re.compile(rf"(?<![A-Za-z0-9_])(?:{names})\s*\(")


class ScanState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    CAPTURING = "capturing"


def _param_span(text: str, pos: int = 0) -> Optional[tuple[int, int]]:
    """Return ``(open, close)`` indices of the first parenthesized group at or after ``pos``.

    Returns None when there is no ``(`` or the group is still unclosed.
    """

    start = text.find("(", pos)
    if start < 0:
        return None
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return start, i
    return None


def _strip_attributes(text: str, attribute_re: re.Pattern[str]) -> str:
    """Remove every closed ``attribute(...)`` annotation, whatever its nesting depth.

    An attribute whose argument list is still open is left in place, so the
    declaration stays incomplete until more lines arrive.
    """

    pos = 0
    while True:
        m = attribute_re.search(text, pos)
        if m is None:
            return text
        span = _param_span(text, m.end() - 1)
        if span is None:
            return text
        text = text[: m.start()] + " " + text[span[1] + 1 :]
        pos = m.start()


class SignatureScanner:
    """Line-driven state machine that recovers tagged kernel signatures.

    Use :meth:`feed` for every line of a file, then :meth:`finish`. Each
    completed declaration is returned by the :meth:`feed` call that closed it.

    Attributes
    ----------
    state : ScanState
        Current scanner state (read-only).
    """

    def __init__(self, source: SourceFile, markers: SignatureMarkers | None = None) -> None:
        self.m_source = source
        self.m_markers = markers or SignatureMarkers()
        self.m_template_re = self.m_markers.template_regex()
        self.m_attribute_re = self.m_markers.attribute_regex()
        self.m_state = ScanState.IDLE
        self.m_buffer: list[str] = []
        self.m_saw_template = False
        self.m_tag_line = 0
        self.m_decl_line = 0

    @property
    def state(self) -> ScanState:
        return self.m_state

    def _reset(self) -> None:
        self.m_state = ScanState.IDLE
        self.m_buffer = []
        self.m_saw_template = False
        self.m_decl_line = 0

    def _drop_pending(self, why: str) -> None:
        if self.m_state is ScanState.ARMED:
            logger.warning(
                "%s: tag at line %d has no %s declaration (%s); dropped",
                self.m_source.path,
                self.m_tag_line,
                self.m_markers.declaration,
                why,
            )
        elif self.m_state is ScanState.CAPTURING:
            logger.warning(
                "%s: unterminated declaration at line %d (%s); dropped",
                self.m_source.path,
                self.m_decl_line,
                why,
            )

    # -------------------------------
    # Transitions
    # -------------------------------

    def _on_tag(self, lineno: int) -> None:
        self._drop_pending(f"new tag at line {lineno}")
        self._reset()
        self.m_state = ScanState.ARMED
        self.m_tag_line = lineno

    def _on_armed(self, line: str, lineno: int) -> Optional[KernelSignature]:
        if self.m_template_re.search(line):
            self.m_saw_template = True
        if self.m_markers.declaration not in line:
            return None
        self.m_state = ScanState.CAPTURING
        self.m_decl_line = lineno
        return self._on_capturing(line)

    def _on_capturing(self, line: str) -> Optional[KernelSignature]:
        self.m_buffer.append(line.strip())
        text = self._normalize(" ".join(self.m_buffer))
        span = _param_span(text)
        if span is None:
            return None
        sig = self._complete(text, span)
        self._reset()
        return sig

    def _normalize(self, text: str) -> str:
        if self.m_attribute_re is not None:
            text = _strip_attributes(text, self.m_attribute_re)
        return _WHITESPACE.sub(" ", text).strip()

    def _complete(self, text: str, span: tuple[int, int]) -> Optional[KernelSignature]:
        start, end = span
        m = _TRAILING_IDENT.search(text[:start])
        if m is None or m.group(1) in (self.m_markers.declaration, "void", *self.m_markers.attributes):
            logger.warning(
                "%s: no kernel name before '(' in declaration at line %d: %r",
                self.m_source.path,
                self.m_decl_line,
                text,
            )
            return None
        return KernelSignature(
            source=self.m_source,
            kernel_name=m.group(1),
            params=text[start + 1 : end].strip(),
            is_template=self.m_saw_template,
            line=self.m_decl_line,
        )

    # -------------------------------
    # Driver
    # -------------------------------

    def feed(self, raw_line: str, lineno: int = 0) -> Optional[KernelSignature]:
        """Consume one source line; return a signature when one completes."""

        line = _LINE_COMMENT.sub("", raw_line)
        if self.m_markers.tag in line:
            self._on_tag(lineno)
            return None
        if self.m_state is ScanState.ARMED:
            return self._on_armed(line, lineno)
        if self.m_state is ScanState.CAPTURING:
            return self._on_capturing(line)
        return None

    def finish(self) -> None:
        """Signal end of input; any pending declaration is dropped."""

        self._drop_pending("end of file")
        self._reset()


def extract_signatures(
    text: str,
    source: SourceFile,
    markers: SignatureMarkers | None = None,
) -> list[KernelSignature]:
    """Return tagged kernel signatures found in ``text``, in source order.

    Parameters
    ----------
    text : str
        Full source text.
    source : SourceFile
        File the text was read from (attached to every record).
    markers : SignatureMarkers, optional
        Marker configuration; defaults to the CUDA markers.

    Returns
    -------
    list of KernelSignature
        Zero or more signatures. Malformed declarations are skipped.

    Examples
    --------
    >>> src = SourceFile.from_path('poisson.cu')
    >>> text = 'KERNEL_TAG\\n__global__ void foo(int a,\\n    float* b) {'
    >>> [s.display() for s in extract_signatures(text, src)]
    ['foo(int a, float* b)']
    """

    scanner = SignatureScanner(source, markers)
    out: list[KernelSignature] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        sig = scanner.feed(line, lineno)
        if sig is not None:
            out.append(sig)
    scanner.finish()
    logger.debug("%s: %d tagged kernel(s)", source.path, len(out))
    return out
