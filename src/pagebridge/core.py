"""
Dispatch layer for Pagebridge.

Resolves dialect names through the registry and wires parsers to converters:
- parse / convert / translate for one dialect pair
- detection of the source dialect from content shape
- fan-out of one component forest to many dialects on a thread pool
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from .config import Config, get_config
# Detection order is set by each dialect's priority: JSON dialects, prefixed
# bracket tags, then WPBakery (which also accepts unprefixed tags), then HTML
from .dialects import elementor as _elementor  # noqa: F401 - ensure elementor dialect is registered
from .dialects import bricks as _bricks  # noqa: F401 - ensure bricks dialect is registered
from .dialects import divi as _divi  # noqa: F401 - ensure divi dialect is registered
from .dialects import avada as _avada  # noqa: F401 - ensure avada dialect is registered
from .dialects import wpbakery as _wpbakery  # noqa: F401 - ensure wpbakery dialect is registered
from .dialects import bootstrap as _bootstrap  # noqa: F401 - ensure bootstrap dialect is registered
from .dialects.base import Dialect, DialectConverter, JsonTreeConverter, registry
from .errors import PageBridgeError, UnknownDialectError
from .model import Component, as_list, iter_forest

logger = logging.getLogger(__name__)

__all__ = [
    "PageBridgeError",
    "TranslationResult",
    "UnknownDialectError",
    "convert",
    "convert_only",
    "convert_to_all",
    "convert_tree",
    "detect_dialect",
    "is_valid_content",
    "parse",
    "parse_only",
    "registry",
    "translate",
    "translate_detailed",
    "translate_to_all",
    "tree_confidence",
]


@dataclass
class TranslationResult:
    """Output of one source -> target translation with diagnostics."""
    source: str
    target: str
    output: str
    components: list[Component] = field(default_factory=list)
    confidence: float = 0.0
    warnings: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return bool(self.components) and not self.warnings


def get_dialect(name: str | Dialect) -> Dialect:
    if isinstance(name, Dialect):
        return name
    return registry.get(name)


def parse(dialect: str, content: Any) -> list[Component]:
    """Parse native content into a component forest; invalid content gives []."""
    return get_dialect(dialect).parser().parse(content)


def convert(dialect: str, components: Component | list[Component], config: Config | None = None) -> str:
    """Emit native text for a component or forest."""
    return get_dialect(dialect).converter(config).convert(components)


def convert_tree(dialect: str, components: Component | list[Component], config: Config | None = None) -> Any:
    """
    Like convert, but JSON dialects return the document as Python objects.

    Text dialects (bracket-tag, HTML) return the same string convert() does.
    """
    converter = get_dialect(dialect).converter(config)
    if isinstance(converter, JsonTreeConverter):
        return converter.build_tree(components)
    return converter.convert(components)


def is_valid_content(dialect: str, content: Any) -> bool:
    return get_dialect(dialect).parser().is_valid_content(content)


def detect_dialect(content: Any) -> str | None:
    """Name of the first registered dialect whose shape check accepts content."""
    match = registry.detect(content)
    return match.name if match else None


def tree_confidence(dialect: str | DialectConverter, components: Component | list[Component]) -> float:
    """Mean per-node confidence of converting a forest into `dialect`; 0.0 for an empty forest."""
    converter = dialect if isinstance(dialect, DialectConverter) else get_dialect(dialect).converter()
    scores = [converter.confidence(node) for node in iter_forest(as_list(components))]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def translate(source: str, target: str, content: Any, config: Config | None = None) -> str:
    """Translate native content from one dialect to another."""
    return translate_detailed(source, target, content, config).output


def translate_detailed(source: str, target: str, content: Any, config: Config | None = None) -> TranslationResult:
    """
    Translate and report what happened along the way.

    Warnings collect tokenizer recovery notes and the types that could only be
    emitted as fallback blocks.
    """
    source_dialect = get_dialect(source)
    target_dialect = get_dialect(target)
    started = time.perf_counter()

    parser = source_dialect.parser()
    components = parser.parse(content)
    warnings = list(parser.warnings)

    if not components:
        warnings.append(f"no components parsed from {source_dialect.name} input")
        output = ""
        confidence = 0.0
    else:
        converter = target_dialect.converter(config)
        output = converter.convert(components)
        confidence = tree_confidence(converter, components)
        for type_ in dict.fromkeys(converter.fallbacks):
            warnings.append(f"no {target_dialect.name} equivalent for '{type_}', emitted fallback block")

    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "translate %s -> %s: %d components in %.1f ms",
        source_dialect.name, target_dialect.name, len(components), duration_ms,
    )
    return TranslationResult(
        source=source_dialect.name,
        target=target_dialect.name,
        output=output,
        components=components,
        confidence=confidence,
        warnings=warnings,
        duration_ms=duration_ms,
    )


def convert_to_all(
    components: Component | list[Component],
    dialects: list[str] | None = None,
    max_workers: int | None = None,
    config: Config | None = None,
) -> dict[str, str]:
    """
    Convert one forest into several dialects concurrently.

    Every worker builds its own converter, so id sequences never interleave.
    Results keep the order of `dialects` (default: every registered dialect).
    """
    cfg = config or get_config()
    names = [get_dialect(name).name for name in (dialects or registry.names)]
    workers = max_workers or cfg.batch.max_workers
    roots = as_list(components)

    def run(name: str) -> str:
        return convert(name, roots, cfg)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outputs = list(pool.map(run, names))
    return dict(zip(names, outputs))


def translate_to_all(
    source: str,
    content: Any,
    dialects: list[str] | None = None,
    max_workers: int | None = None,
    config: Config | None = None,
) -> dict[str, str]:
    """Parse once, then convert to each dialect in `dialects` (default: all registered)."""
    components = parse(source, content)
    if not components:
        logger.warning("translate_to_all: no components parsed from %s input", get_dialect(source).name)
    return convert_to_all(components, dialects=dialects, max_workers=max_workers, config=config)


# Exported aliases
parse_only = parse
convert_only = convert
