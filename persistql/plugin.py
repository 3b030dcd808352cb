"""
PersistedQueryPlugin - the manifest pipeline wired to build pass hooks.

The host build tool drives a plugin through four hooks, in pass order:

1. :meth:`~PersistedQueryPlugin.on_compilation` when a pass starts;
2. :meth:`~PersistedQueryPlugin.after_resolve` for every resolved request;
3. :meth:`~PersistedQueryPlugin.on_seal` once the pass's modules are final;
4. :meth:`~PersistedQueryPlugin.after_compile` when the pass is done.

Usage::

    producer = PersistedQueryPlugin(module_name="persisted_queries.json")
    consumer = PersistedQueryPlugin(
        module_name="persisted_queries.json",
        filename="output_queries.json",
        mode=Consumer(producer),
    )
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .build import BuildPass
from .config import Consumer, PluginConfig
from .coordinator import ManifestCoordinator, ResolutionGate
from .hashing import OperationHasher
from .manifest import EMPTY_MANIFEST_JSON, Manifest, ManifestBuilder, module_source
from .virtual import VirtualModuleStore

logger = logging.getLogger("persistql.plugin")


class PersistedQueryPlugin:
    """
    Generates (Standalone) or receives (Consumer) persisted-query manifests.

    Every plugin owns a coordinator. A Standalone plugin publishes what it
    builds at each seal; a Consumer republishes what its producer sends, so
    consumers can themselves be producers for further consumers.

    Args:
        config: Full configuration. When omitted, keyword options build one.

    Raises:
        ConfigMissingFault: If no ``module_name`` is configured.
        ConfigInvalidFault: On an unusable mode or hash algorithm.
    """

    def __init__(self, config: Optional[PluginConfig] = None, **options) -> None:
        if config is None:
            config = PluginConfig(**options)
        self.config = config.validate()
        self.name = f"{config.mode.kind}:{config.module_name}"

        self.virtual_modules = VirtualModuleStore()
        self.coordinator = ManifestCoordinator(name=self.name)
        self.gate = ResolutionGate(name=self.name)
        self.builder = ManifestBuilder(
            add_typename=config.add_typename,
            hasher=OperationHasher(config.hash_algorithm),
        )

        if isinstance(config.mode, Consumer):
            producer = config.mode.producer.coordinator
            producer.subscribe(self)
            if producer.current is not None:
                self.on_update(producer.current)

    def __repr__(self) -> str:
        return f"PersistedQueryPlugin({self.name!r}, state={self.coordinator.state.value})"

    # ── Read access ──────────────────────────────────────────────────

    @property
    def module_name(self) -> str:
        return self.config.module_name

    @property
    def manifest(self) -> Optional[Manifest]:
        """Currently published manifest, ``None`` before the first publication."""
        current = self.coordinator.current
        return Manifest.from_json(current) if current is not None else None

    @property
    def manifest_source(self) -> Optional[str]:
        """Source of the virtual manifest module as the resolver sees it."""
        return self.virtual_modules.read(self.config.module_name)

    # ── Hooks ────────────────────────────────────────────────────────

    def on_compilation(self, build_pass: BuildPass) -> None:
        """Seed the manifest module with an empty manifest before anything resolves."""
        if self.coordinator.current is None and not build_pass.is_child:
            self.virtual_modules.write_module(
                self.config.module_name, module_source(EMPTY_MANIFEST_JSON)
            )

    def after_resolve(
        self,
        build_pass: BuildPass,
        request: Optional[str],
        callback: Callable[[Optional[str]], None],
    ) -> bool:
        """
        Complete the resolution of *request* by calling *callback*.

        A consumer that resolves the manifest module before its producer
        published anything is suspended until the first manifest arrives.

        Returns:
            True when the resolution was suspended.
        """
        if (
            request is not None
            and self.config.is_consumer
            and self.config.module_name in request
        ):
            suspended = self.gate.defer(lambda: callback(request))
            if suspended:
                logger.debug("%s: %s waiting for first manifest (%s)", self.name, request, build_pass.name)
            return suspended
        callback(request)
        return False

    def on_seal(self, build_pass: BuildPass) -> Optional[Manifest]:
        """
        Build the manifest of a sealed top-level pass and publish it if changed.

        Consumers and child passes never build. A parse failure propagates as
        :class:`~persistql.faults.DocumentParseFault` and nothing is
        published.
        """
        if self.config.is_consumer:
            return None
        if build_pass.is_child:
            logger.debug("%s: child pass %s reuses the parent manifest", self.name, build_pass.name)
            return None

        manifest = self.builder.build(build_pass.modules)
        manifest_json = manifest.to_json()
        previous = self.coordinator.current
        changed = manifest_json != previous

        if changed:
            self._write_manifest_module(manifest_json, build_pass)
            before = Manifest.from_json(previous) if previous is not None else Manifest()
            logger.info(
                "%s: manifest updated, %d operation(s) (%s)",
                self.name,
                len(manifest),
                before.diff(manifest).summary(),
            )

        if self.config.filename:
            build_pass.emit_asset(self.config.filename, manifest_json)

        if changed:
            self.coordinator.publish(manifest_json)
        return manifest

    def after_compile(self, build_pass: BuildPass) -> None:
        """Emit a consumer's manifest asset once its top-level pass completes."""
        if not self.config.is_consumer or not self.config.filename or build_pass.is_child:
            return
        current = self.coordinator.current
        if current is None:
            logger.warning(
                "%s: pass %s finished before any manifest was published; %s not emitted",
                self.name,
                build_pass.name,
                self.config.filename,
            )
            return
        build_pass.emit_asset(self.config.filename, current)

    def process(self, build_pass: BuildPass) -> Optional[Manifest]:
        """Run the start, seal and completion hooks for a pass whose modules are already known."""
        self.on_compilation(build_pass)
        manifest = self.on_seal(build_pass)
        self.after_compile(build_pass)
        return manifest

    # ── Subscriber ───────────────────────────────────────────────────

    def on_update(self, manifest: str) -> None:
        """Receive a manifest from the producer (Consumer mode)."""
        if manifest != self.coordinator.current:
            self._write_manifest_module(manifest)
            self.coordinator.publish(manifest)
        self.gate.release()

    # ── Internal ─────────────────────────────────────────────────────

    def _write_manifest_module(self, manifest_json: str, build_pass: Optional[BuildPass] = None) -> None:
        source = module_source(manifest_json)
        self.virtual_modules.write_module(self.config.module_name, source)
        if build_pass is not None:
            for module in build_pass.modules_for(self.config.module_name):
                module.source = source
