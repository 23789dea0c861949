import asyncio
import enum
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import EmptyOutputError, ExecutionError, ScanError
from .ui import ScannerUI


class UnitState(enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ScanUnit:
    """One target block, its command line and the output it produced."""
    block: str
    command: str
    chunks: List[bytes] = field(default_factory=list)
    state: UnitState = UnitState.PENDING
    error: Optional[ScanError] = None


class ScanEngine:
    """
    Runs scan units as child processes with at most `threshold` alive at once.

    run_all() raises the first unit failure as soon as it happens. The
    remaining units are not cancelled: they keep running on the pool task,
    which drain() can await.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, threshold: int, verbose: bool = False, ui: Optional[ScannerUI] = None):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.threshold = threshold
        self.verbose = verbose
        self.ui = ui or ScannerUI()
        self.units: Dict[str, ScanUnit] = {}
        self.active = 0
        self.peak_active = 0
        self._pool: Optional[asyncio.Task] = None

    async def _spawn(self, command: str):
        args = shlex.split(command)
        return await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

    async def _collect(self, stream, unit: ScanUnit):
        while True:
            chunk = await stream.read(self.CHUNK_SIZE)
            if not chunk:
                break
            unit.chunks.append(chunk)

    async def _discard(self, stream):
        # stderr is drained so the child never blocks on a full pipe
        while await stream.read(self.CHUNK_SIZE):
            pass

    async def run_unit(self, unit: ScanUnit):
        if self.verbose:
            self.ui.show_command(unit.command)

        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            try:
                proc = await self._spawn(unit.command)
            except (OSError, ValueError) as e:
                raise ExecutionError(unit.command, reason=str(e)) from e

            try:
                await asyncio.gather(
                    self._collect(proc.stdout, unit),
                    self._discard(proc.stderr),
                )
                returncode = await proc.wait()
            except asyncio.CancelledError:
                if proc.returncode is None:
                    try:
                        proc.kill()
                    except ProcessLookupError:
                        pass
                raise
        finally:
            self.active -= 1

        if returncode != 0:
            raise ExecutionError(unit.command, returncode=returncode)
        if not unit.chunks:
            raise EmptyOutputError(unit.block)

    async def _settle(self, unit: ScanUnit, failed: asyncio.Future):
        try:
            await self.run_unit(unit)
        except ScanError as e:
            unit.state = UnitState.FAILED
            unit.error = e
            if not failed.done():
                failed.set_exception(e)
            return
        unit.state = UnitState.SUCCEEDED

    async def run_all(self, commands: Dict[str, str]) -> Dict[str, List[bytes]]:
        """
        Executes every {block: command} pair and returns {block: chunks}.
        """
        self.units = {block: ScanUnit(block, cmd) for block, cmd in commands.items()}
        if not self.units:
            return {}

        failed = asyncio.get_running_loop().create_future()
        queue = asyncio.Queue(maxsize=self.threshold * 2)
        workers = min(self.threshold, len(self.units))

        async def producer():
            for unit in self.units.values():
                await queue.put(unit)
            # Sentinels to stop consumers
            for _ in range(workers):
                await queue.put(None)

        async def consumer():
            while True:
                unit = await queue.get()
                if unit is None:
                    queue.task_done()
                    break
                # The number of consumers is the concurrency limit
                await self._settle(unit, failed)
                queue.task_done()

        async def pool():
            await asyncio.gather(producer(), *(consumer() for _ in range(workers)))

        self._pool = asyncio.create_task(pool())
        await asyncio.wait({self._pool, failed}, return_when=asyncio.FIRST_COMPLETED)

        if failed.done():
            failed.result()
        self._pool.result()
        failed.cancel()

        return {block: unit.chunks for block, unit in self.units.items()}

    async def drain(self):
        """Waits for units still running after a fail-fast return."""
        if self._pool is not None:
            await self._pool
