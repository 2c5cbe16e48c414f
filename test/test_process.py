import asyncio
import signal
from pathlib import Path

import psutil
import pytest

from browser import process
from browser.errors import UnsupportedPlatformError, WaitCancelledError
from browser.process import ProcessState, ProcessSupervisor, build_launch_args
from settings import BROWSER


class DummyProc:
    def __init__(self, name, table=None):
        self.info = {"name": name}
        self._table = table
        self.killed = False

    def kill(self):
        self.killed = True
        if self._table is not None:
            self._table.dying.append(self)


class ProcessTable:
    """Tabla de procesos falsa: los procesos matados desaparecen tras ``lag`` consultas."""

    def __init__(self, names, lag=0):
        self.procs = [DummyProc(name, self) for name in names]
        self.dying = []
        self.lag = lag

    def process_iter(self, attrs=None):
        if self.dying:
            if self.lag <= 0:
                self.procs = [proc for proc in self.procs if proc not in self.dying]
                self.dying = []
            else:
                self.lag -= 1
        return iter(list(self.procs))


class DummyPopen:
    instances = []

    def __init__(self, args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.pid = 4242
        self.returncode = None
        self.kill_calls = 0
        DummyPopen.instances.append(self)

    def poll(self):
        return self.returncode

    def kill(self):
        self.kill_calls += 1
        self.returncode = -9


@pytest.fixture
def windows_supervisor(monkeypatch):
    monkeypatch.setattr(process, "TERMINATE_POLL_INTERVAL", 0)
    supervisor = ProcessSupervisor(platform="win32")
    yield supervisor
    supervisor._uninstall_exit_hooks()


def test_is_any_instance_running_matches_canonical_name(monkeypatch):
    table = ProcessTable(["explorer.exe", "Chrome.exe"])
    monkeypatch.setattr(process.psutil, "process_iter", table.process_iter)

    assert ProcessSupervisor(platform="win32").is_any_instance_running() is True


def test_is_any_instance_running_fails_open(monkeypatch):
    def broken_iter(attrs=None):
        raise psutil.AccessDenied()

    monkeypatch.setattr(process.psutil, "process_iter", broken_iter)

    assert ProcessSupervisor(platform="win32").is_any_instance_running() is False


def test_terminate_waits_until_no_instance_is_left(monkeypatch, windows_supervisor):
    table = ProcessTable(["chrome.exe", "chrome.exe", "python.exe"], lag=3)
    monkeypatch.setattr(process.psutil, "process_iter", table.process_iter)

    asyncio.run(windows_supervisor.terminate())

    assert [proc.killed for proc in table.procs] == [False]
    assert windows_supervisor.is_any_instance_running() is False


def test_terminate_can_be_cancelled(monkeypatch, windows_supervisor):
    stuck = ProcessTable(["chrome.exe"])
    stuck.procs[0].kill = lambda: None
    monkeypatch.setattr(process.psutil, "process_iter", stuck.process_iter)
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(WaitCancelledError):
        asyncio.run(windows_supervisor.terminate(cancel=cancel))


@pytest.mark.parametrize("platform", ["linux", "darwin"])
def test_launch_and_terminate_reject_unsupported_platform(monkeypatch, platform):
    DummyPopen.instances = []
    monkeypatch.setattr(process.subprocess, "Popen", DummyPopen)
    supervisor = ProcessSupervisor(platform=platform)

    with pytest.raises(UnsupportedPlatformError):
        asyncio.run(supervisor.launch("perfil"))
    with pytest.raises(UnsupportedPlatformError):
        asyncio.run(supervisor.terminate())

    assert DummyPopen.instances == []


def test_build_launch_args_resolves_profile_against_cwd(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    args = build_launch_args("perfil-aislado")

    assert args[0] == BROWSER.chrome_path
    assert f"--remote-debugging-port={BROWSER.debug_port}" in args
    assert f"--user-data-dir={tmp_path / 'perfil-aislado'}" in args
    assert "--no-sandbox" in args
    assert "--disable-software-rasterizer" in args
    assert f"--user-agent={BROWSER.user_agent}" in args
    assert args[-1] == BROWSER.start_url


def test_launch_spawns_detached_process_and_registers_exit_hooks(
    monkeypatch, windows_supervisor
):
    DummyPopen.instances = []
    registered = []
    monkeypatch.setattr(process.subprocess, "Popen", DummyPopen)
    monkeypatch.setattr(process.atexit, "register", registered.append)
    monkeypatch.setattr(process.atexit, "unregister", lambda func: None)

    record = asyncio.run(windows_supervisor.launch(Path("C:/perfiles/uno")))

    popen = DummyPopen.instances[0]
    assert record.pid == 4242
    assert record.state is ProcessState.RUNNING
    assert popen.kwargs["creationflags"] == process._DETACHED_FLAGS
    assert registered == [windows_supervisor.kill_spawned]

    # El gancho de salida mata el proceso lanzado.
    registered[0]()
    assert popen.kill_calls == 1
    assert record.state is ProcessState.EXITED


def test_launch_reports_spawn_errors_through_callback(monkeypatch, windows_supervisor):
    def failing_popen(*args, **kwargs):
        raise FileNotFoundError("chrome.exe no existe")

    monkeypatch.setattr(process.subprocess, "Popen", failing_popen)
    notified = []

    async def scenario():
        record = await windows_supervisor.launch(
            "perfil", on_error=lambda proc, exc: notified.append((proc, exc))
        )
        # La notificación llega en la siguiente vuelta del loop.
        assert notified == []
        await asyncio.sleep(0)
        return record

    record = asyncio.run(scenario())

    assert record.state is ProcessState.FAILED
    assert isinstance(record.error, FileNotFoundError)
    assert notified == [(record, record.error)]
    assert windows_supervisor.processes == []


def test_context_manager_kills_spawned_processes(monkeypatch):
    DummyPopen.instances = []
    monkeypatch.setattr(process.subprocess, "Popen", DummyPopen)
    monkeypatch.setattr(process.atexit, "register", lambda func: None)
    monkeypatch.setattr(process.atexit, "unregister", lambda func: None)

    async def scenario():
        async with ProcessSupervisor(platform="win32") as supervisor:
            await supervisor.launch("perfil")
        return supervisor

    supervisor = asyncio.run(scenario())

    assert DummyPopen.instances[0].kill_calls == 1
    assert supervisor._hooks_installed is False


def test_terminate_tolerates_unreadable_process_table(monkeypatch, windows_supervisor):
    def broken_iter(attrs=None):
        raise psutil.AccessDenied()

    monkeypatch.setattr(process.psutil, "process_iter", broken_iter)

    asyncio.run(windows_supervisor.terminate())


@pytest.fixture
def launched(monkeypatch, windows_supervisor):
    DummyPopen.instances = []
    installed = []

    def fake_signal(signum, handler):
        installed.append((signum, handler))
        return signal.SIG_DFL

    monkeypatch.setattr(process.subprocess, "Popen", DummyPopen)
    monkeypatch.setattr(process.atexit, "register", lambda func: None)
    monkeypatch.setattr(process.atexit, "unregister", lambda func: None)
    monkeypatch.setattr(process.signal, "signal", fake_signal)

    record = asyncio.run(windows_supervisor.launch("perfil"))
    return windows_supervisor, record, installed


def test_exit_hooks_register_interrupt_and_termination_signals(launched):
    supervisor, _, installed = launched

    signums = [signum for signum, _ in installed]
    assert signal.SIGINT in signums
    assert signal.SIGTERM in signums
    assert all(handler == supervisor._handle_exit_signal for _, handler in installed)


def test_termination_signal_kills_chrome_and_exits(launched):
    supervisor, record, _ = launched
    supervisor._previous_handlers[signal.SIGTERM] = signal.SIG_DFL

    with pytest.raises(SystemExit):
        supervisor._handle_exit_signal(signal.SIGTERM, None)

    assert DummyPopen.instances[0].kill_calls == 1
    assert record.state is ProcessState.EXITED


def test_interrupt_signal_chains_previous_handler(launched):
    supervisor, _, _ = launched
    chained = []
    supervisor._previous_handlers[signal.SIGINT] = lambda signum, frame: chained.append(signum)

    supervisor._handle_exit_signal(signal.SIGINT, None)

    assert chained == [signal.SIGINT]
    assert DummyPopen.instances[0].kill_calls == 1


def test_interrupt_without_previous_handler_raises_keyboard_interrupt(launched):
    supervisor, _, _ = launched
    supervisor._previous_handlers[signal.SIGINT] = signal.SIG_DFL

    with pytest.raises(KeyboardInterrupt):
        supervisor._handle_exit_signal(signal.SIGINT, None)

    assert DummyPopen.instances[0].kill_calls == 1


def test_ignored_signal_only_kills_chrome(launched):
    supervisor, _, _ = launched
    supervisor._previous_handlers[signal.SIGTERM] = signal.SIG_IGN

    supervisor._handle_exit_signal(signal.SIGTERM, None)

    assert DummyPopen.instances[0].kill_calls == 1
