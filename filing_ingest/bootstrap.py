"""
Library Bootstrap
Lazily imports the external parsing libraries and memoizes their handles.

Capabilities:
- pdf: pypdfium2 (open, text layer, page rendering)
- docx: python-docx (word-processor documents)
- tesseract: pytesseract (local OCR)

Each capability is loaded at most once per process. Concurrent callers share a
single in-flight attempt; a failed attempt is forgotten so the next caller
starts over.
"""

import asyncio
import importlib
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .config import LIBRARY_LOAD_TIMEOUT, get_config
from .errors import CapabilityNotFound, LoadFailure, LoadTimeout

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TESSERACT = "tesseract"


@dataclass
class CapabilitySpec:
    """
    How to load one capability.

    loader: returns the library handle (normally a module)
    entry_point: attribute that must exist on the handle after loading
    configure: optional one-time post-load setup
    """
    loader: Callable[[], Any]
    entry_point: str
    configure: Optional[Callable[[Any], None]] = None


def _configure_tesseract(module: Any) -> None:
    cmd = get_config().tesseract_cmd
    if cmd:
        module.pytesseract.tesseract_cmd = cmd
        logger.info(f"[BOOTSTRAP] tesseract binary set to {cmd}")


DEFAULT_CAPABILITIES: Dict[str, CapabilitySpec] = {
    Capability.PDF.value: CapabilitySpec(
        loader=lambda: importlib.import_module("pypdfium2"),
        entry_point="PdfDocument",
    ),
    Capability.DOCX.value: CapabilitySpec(
        loader=lambda: importlib.import_module("docx"),
        entry_point="Document",
    ),
    Capability.TESSERACT.value: CapabilitySpec(
        loader=lambda: importlib.import_module("pytesseract"),
        entry_point="image_to_string",
        configure=_configure_tesseract,
    ),
}


class LibraryBootstrap:
    """Thread-safe, lazily initialised registry of library handles."""

    def __init__(
        self,
        specs: Optional[Dict[str, CapabilitySpec]] = None,
        timeout: float = LIBRARY_LOAD_TIMEOUT
    ):
        """
        Args:
            specs: Capability name -> CapabilitySpec (defaults to the real libraries)
            timeout: Seconds a single load attempt may take
        """
        self.specs = dict(DEFAULT_CAPABILITIES if specs is None else specs)
        self.timeout = timeout
        self._handles: Dict[str, Any] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.RLock()

    def is_loaded(self, capability) -> bool:
        return _key(capability) in self._handles

    async def acquire(self, capability) -> Any:
        """
        Return the handle for a capability, loading it on first use.

        Raises:
            LoadTimeout: No outcome within the timeout
            LoadFailure: The loader raised
            CapabilityNotFound: Loaded, but the entry point is missing
        """
        name = _key(capability)
        handle = self._handles.get(name)
        if handle is not None:
            return handle

        with self._lock:
            handle = self._handles.get(name)
            if handle is not None:
                return handle
            attempt = self._inflight.get(name)
            if attempt is None:
                attempt = self._start_load(name)
            else:
                logger.debug(f"[BOOTSTRAP] Joining in-flight load of {name}")

        # Loop-agnostic future: callers on other loops/threads share the attempt
        return await asyncio.shield(asyncio.wrap_future(attempt))

    def acquire_sync(self, capability) -> Any:
        """Synchronous version of acquire."""
        return asyncio.run(self.acquire(capability))

    def reset(self) -> None:
        """Forget all cached handles (used by tests)."""
        with self._lock:
            self._handles.clear()

    def _start_load(self, name: str) -> Future:
        """Start one load attempt. Caller must hold the lock."""
        attempt: Future = Future()
        # A running future cannot be cancelled by one impatient waiter
        attempt.set_running_or_notify_cancel()
        self._inflight[name] = attempt

        spec = self.specs.get(name)
        if spec is None:
            self._settle(name, attempt, error=CapabilityNotFound(name, "no loader registered"))
            return attempt

        logger.info(f"[BOOTSTRAP] Loading {name} (timeout {self.timeout:.0f}s)...")
        timer = threading.Timer(
            self.timeout,
            self._on_timeout,
            args=(name, attempt),
        )
        timer.daemon = True
        worker = threading.Thread(
            target=self._run_load,
            args=(name, spec, attempt, timer),
            name=f"load-{name}",
            daemon=True,
        )
        timer.start()
        worker.start()
        return attempt

    def _run_load(self, name: str, spec: CapabilitySpec, attempt: Future, timer: threading.Timer) -> None:
        try:
            try:
                handle = spec.loader()
            except Exception as e:
                self._settle(name, attempt, error=LoadFailure(name, f"failed to load library: {e}"))
                return

            if handle is None or not hasattr(handle, spec.entry_point):
                self._settle(name, attempt, error=CapabilityNotFound(
                    name, f"'{spec.entry_point}' not found after loading"
                ))
                return

            if spec.configure is not None:
                try:
                    spec.configure(handle)
                except Exception as e:
                    self._settle(name, attempt, error=LoadFailure(name, f"post-load configuration failed: {e}"))
                    return

            self._settle(name, attempt, handle=handle)
        finally:
            timer.cancel()

    def _on_timeout(self, name: str, attempt: Future) -> None:
        self._settle(name, attempt, error=LoadTimeout(
            name, f"library did not load within {self.timeout:.0f}s"
        ))

    def _settle(self, name: str, attempt: Future, handle: Any = None, error: Optional[Exception] = None) -> None:
        """Resolve an attempt exactly once; later outcomes of the same attempt are dropped."""
        with self._lock:
            if attempt.done():
                return
            if self._inflight.get(name) is attempt:
                del self._inflight[name]
            if error is None:
                self._handles[name] = handle
                attempt.set_result(handle)
                logger.info(f"[BOOTSTRAP] {name} ready")
            else:
                attempt.set_exception(error)
                logger.warning(f"[BOOTSTRAP] {error}")


def _key(capability) -> str:
    return capability.value if isinstance(capability, Capability) else str(capability)


_bootstrap: Optional[LibraryBootstrap] = None
_bootstrap_lock = threading.Lock()


def get_bootstrap() -> LibraryBootstrap:
    """Process-wide bootstrap instance."""
    global _bootstrap
    if _bootstrap is None:
        with _bootstrap_lock:
            if _bootstrap is None:
                _bootstrap = LibraryBootstrap()
    return _bootstrap
