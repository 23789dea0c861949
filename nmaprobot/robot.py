"""
Public entry points.

    from nmaprobot.robot import Robot, scan

    reports = await Robot(range=["10.0.2.0/24"], ports="22,80").scan()

    def done(err, reports):
        ...
    scan({"range": ["scanme.nmap.org"]}, done)

Both return {target block: report}, where a report is the nmaprun node as a
dict or, with json=False, the raw XML text.
"""
import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .command import build_commands
from .config import ScanOptions
from .engine import ScanEngine
from .errors import HostValidationError, OptionsError, ScanError
from .network import Adapter, adapter_ranges, calculate, local_adapters
from .report import assemble
from .ui import ScannerUI
from .validator import validate_options

Callback = Callable[[Optional[Exception], Optional[Dict[str, Any]]], None]


class Robot:
    def __init__(self, options: Optional[Dict[str, Any]] = None, ui: Optional[ScannerUI] = None, **overrides):
        merged = dict(options or {})
        merged.update(overrides)
        self.options = ScanOptions.build(merged)
        self.ui = ui or ScannerUI()
        self.engine: Optional[ScanEngine] = None
        self.skipped: List[HostValidationError] = []

    def prepare(self, discover: bool = False,
                adapters: Optional[Iterable[Adapter]] = None) -> Tuple[ScanOptions, List[str]]:
        """
        Validates the options and works out the target blocks.

        Unrecognised range entries are collected in self.skipped and left out
        of the scan; they only fail it when nothing valid remains (RangeError).
        Every other validation error is fatal and nothing is spawned.
        """
        errors = validate_options(self.options, discover=discover)
        self.skipped = [e for e in errors if isinstance(e, HostValidationError)]
        fatal = [e for e in errors if not isinstance(e, HostValidationError)]
        if fatal:
            raise OptionsError(fatal)
        if self.skipped and self.options.verbose:
            self.ui.show_errors(OptionsError(self.skipped))

        opts = self.options
        if discover:
            if adapters is None:
                adapters = local_adapters()
            opts = opts.with_discover_preset(adapter_ranges(adapters))

        return opts, calculate(opts.range, opts.blocksize)

    async def _run(self, opts: ScanOptions, blocks: List[str]) -> Dict[str, Any]:
        commands = build_commands(opts, blocks)
        self.engine = ScanEngine(opts.threshold, verbose=opts.verbose, ui=self.ui)
        outputs = await self.engine.run_all(commands)
        return {block: assemble(opts, chunks) for block, chunks in outputs.items()}

    async def scan(self) -> Dict[str, Any]:
        """Port scan of the configured ranges."""
        return await self._run(*self.prepare())

    async def discover(self, adapters: Optional[Iterable[Adapter]] = None) -> Dict[str, Any]:
        """Host presence sweep of the networks attached to local adapters."""
        return await self._run(*self.prepare(discover=True, adapters=adapters))


async def complete(options: Optional[Dict[str, Any]] = None, callback: Optional[Callback] = None,
                   discover: bool = False, adapters: Optional[Iterable[Adapter]] = None,
                   ui: Optional[ScannerUI] = None):
    """
    Runs a scan or discover and settles it.

    A failure reaches the callback as soon as it happens, but the coroutine
    only returns (or raises, without a callback) once the units that were
    still running have finished, so the event loop never tears them down.
    """
    robot = None
    try:
        robot = Robot(options, ui=ui)
        if discover:
            result = await robot.discover(adapters)
        else:
            result = await robot.scan()
    except ScanError as e:
        if callback is not None:
            callback(e, None)
        if robot is not None and robot.engine is not None:
            await robot.engine.drain()
        if callback is None:
            raise
        return None

    if callback is not None:
        callback(None, result)
    return result


def scan(options: Optional[Dict[str, Any]] = None, callback: Optional[Callback] = None):
    """
    Blocking scan. With a callback it is called as callback(error, reports),
    otherwise the reports are returned and errors raised.
    """
    return asyncio.run(complete(options, callback))


def discover(options: Optional[Dict[str, Any]] = None, callback: Optional[Callback] = None,
             adapters: Optional[Iterable[Adapter]] = None):
    """Blocking discover, same calling convention as scan()."""
    return asyncio.run(complete(options, callback, discover=True, adapters=adapters))
