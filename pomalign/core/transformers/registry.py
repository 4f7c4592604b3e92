from __future__ import annotations

import copy
import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pomalign.core.errors import ManipulationError, TransformError
from pomalign.core.model import Descriptor
from pomalign.core.observability.metrics import inc_transformer

from .contracts import Transformer, TransformerInfo

log = logging.getLogger("pomalign.transformers")

# pomalign/core/transformers/registry.py -> parents[2] = pomalign/
DEFAULT_PLUGIN_DIR = Path(__file__).resolve().parents[2] / "plugins" / "transformers"


class TransformerRegistry:
    """
    Ordered set of transformers.

    Transformers come from plugin modules in a directory:
      <plugins_dir>/*.py   (files starting with "_" are ignored)

    each exposing:
      TRANSFORMER = <object implementing contracts.Transformer>

    and/or from explicit instances passed to the constructor or register().
    Names must be unique.

    Initialisation runs in reverse priority order (highest index first) so a
    transformer can read state published by the ones that execute after it;
    execution then runs in forward order.
    """

    def __init__(
        self,
        transformers: Optional[Iterable[Any]] = None,
        *,
        plugins_dir: Optional[str | Path] = None,
        load_plugins: bool = True,
    ):
        self._plugins_dir = Path(plugins_dir) if plugins_dir is not None else DEFAULT_PLUGIN_DIR
        self._transformers: Dict[str, Any] = {}
        self._files: Dict[str, Optional[Path]] = {}
        self._fingerprint: Optional[str] = None

        if load_plugins:
            self.load_all()
        for t in transformers or []:
            self.register(t)

    # ---- discovery ----------------------------------------------------------

    def load_all(self) -> None:
        if not self._plugins_dir.is_dir():
            log.warning("Transformer plugin directory %s does not exist", self._plugins_dir)
            return
        for py in sorted(self._plugins_dir.glob("*.py")):
            if py.name.startswith("_"):
                continue
            transformer = self._load_symbol(py, symbol="TRANSFORMER")
            if transformer is None:
                log.warning("Plugin %s has no TRANSFORMER symbol; skipped", py.name)
                continue
            # fresh instance per registry; init() keeps per-run state on it
            self.register(copy.deepcopy(transformer), module_path=py)

    def register(self, transformer: Any, *, module_path: Optional[Path] = None) -> None:
        name = getattr(transformer, "name", None) or type(transformer).__name__
        if name in self._transformers:
            raise ValueError(f"Duplicate transformer name: {name} ({module_path or type(transformer).__name__})")
        self._transformers[name] = transformer
        self._files[name] = module_path
        self._fingerprint = None
        log.debug("Registered transformer %s (priority %s)", name, getattr(transformer, "priority", 100))

    def _load_symbol(self, module_path: Path, symbol: str):
        module_path = Path(module_path).resolve()

        # module name must be deterministic across interpreter restarts
        path_key = str(module_path).replace("\\", "/").lower().encode("utf-8")
        path_hash = hashlib.sha1(path_key).hexdigest()[:16]
        module_name = f"pomalign_transformer_{module_path.stem}_{path_hash}"

        if module_name in sys.modules:
            return getattr(sys.modules[module_name], symbol, None)

        spec = importlib.util.spec_from_file_location(module_name, str(module_path))
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create module spec for {module_path}")

        mod = importlib.util.module_from_spec(spec)
        # registered before exec_module so dataclasses can resolve the module
        sys.modules[module_name] = mod
        try:
            spec.loader.exec_module(mod)  # type: ignore[attr-defined]
        except Exception:
            sys.modules.pop(module_name, None)
            raise

        return getattr(mod, symbol, None)

    # ---- ordering -----------------------------------------------------------

    @property
    def transformers(self) -> List[Transformer]:
        """Execution order: priority, then name."""
        return sorted(
            self._transformers.values(),
            key=lambda t: (getattr(t, "priority", 100), getattr(t, "name", "")),
        )

    def get(self, name: str) -> Optional[Transformer]:
        return self._transformers.get(name)

    def names(self) -> List[str]:
        return [t.name for t in self.transformers]

    @property
    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = self._compute_fingerprint()
        return self._fingerprint

    def _compute_fingerprint(self) -> str:
        h = hashlib.sha256()
        root = self._plugins_dir.resolve()
        for t in self.transformers:
            path = self._files.get(t.name)
            if path is None:
                rel = type(t).__qualname__
            else:
                try:
                    rel = path.resolve().relative_to(root).as_posix()
                except ValueError:
                    rel = path.resolve().as_posix()
            h.update(f"{t.name}:{getattr(t, 'version', '0.0.0')}:{t.priority}:{rel}".encode("utf-8"))
        return h.hexdigest()[:16]

    def config_keys(self) -> Dict[str, bool]:
        keys: Dict[str, bool] = {}
        for t in self.transformers:
            keys.update(getattr(t, "config_keys", {}) or {})
        return keys

    def describe(self) -> List[TransformerInfo]:
        out = []
        for t in self.transformers:
            path = self._files.get(t.name)
            enabled = bool(t.is_enabled())
            out.append(TransformerInfo(
                name=t.name,
                priority=int(getattr(t, "priority", 100)),
                version=str(getattr(t, "version", "0.0.0")),
                module_path=str(path) if path else None,
                enabled=enabled,
            ))
        return out

    # ---- run ----------------------------------------------------------------

    def init_all(self, session: Any) -> List[Transformer]:
        """Initialise in reverse order; returns the enabled ones in execution order."""
        for t in reversed(self.transformers):
            log.debug("Initialising transformer %s", t.name)
            try:
                t.init(session)
            except ManipulationError:
                raise
            except Exception as exc:
                raise TransformError(f"Transformer {t.name} failed to initialise: {exc}") from exc
        return self.enabled()

    def enabled(self) -> List[Transformer]:
        return [t for t in self.transformers if t.is_enabled()]

    def apply(self, descriptors: List[Descriptor]) -> Tuple[Set[Descriptor], List[str]]:
        """
        Run every enabled transformer in order over the shared descriptors.
        Returns (changed descriptors, names of transformers that ran). Any
        failure aborts the pass.
        """
        changed: Set[Descriptor] = set()
        ran: List[str] = []
        for t in self.enabled():
            log.info("Running transformer %s", t.name)
            try:
                result = t.apply_changes(descriptors) or set()
            except ManipulationError:
                raise
            except Exception as exc:
                raise TransformError(f"Transformer {t.name} failed: {exc}") from exc
            inc_transformer(t.name)
            ran.append(t.name)
            if result:
                log.debug("Transformer %s changed %d descriptor(s)", t.name, len(result))
            changed.update(result)
        return changed, ran
