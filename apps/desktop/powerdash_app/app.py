"""Desktop app runtime, view-model, and Qt widget integration."""

from __future__ import annotations

import os
import sys
from importlib import metadata

from PySide6.QtCore import QObject, Property, QTimer, Qt, Signal, Slot
from PySide6.QtGui import QAction, QIcon, QPixmap
from PySide6.QtWidgets import QApplication, QLabel, QMenu, QSystemTrayIcon, QVBoxLayout, QWidget

from powerdash_core import AppConfig, DashboardState, Poller, load_config
from powerdash_core.logging_setup import configure_logging, get_logger, install_crash_hooks, uninstall_crash_hooks
from powerdash_renderer import DashboardRenderer, build_view
from powerdash_telemetry import build_provider


def _app_version() -> str:
    try:
        return metadata.version("powerdash")
    except Exception:
        return "0.1.0"


class PowerDashViewModel(QObject):
    cpuPowerTextChanged = Signal()
    gpuPowerTextChanged = Signal()
    totalPowerTextChanged = Signal()
    memoryTextChanged = Signal()
    carbonTextChanged = Signal()
    gpuUsageTextChanged = Signal()
    errorTextChanged = Signal()
    pollingChanged = Signal()
    previewChanged = Signal()

    def __init__(self, config: AppConfig | None = None) -> None:
        super().__init__()
        self.config: AppConfig = config or load_config()
        self.logger = get_logger()
        self.state = DashboardState(capacity=self.config.poll.history_size)
        self.provider = build_provider(
            kind=self.config.poll.provider,
            carbon_intensity=self.config.telemetry.carbon_intensity,
            interval_ms=self.config.poll.poll_ms,
            powermetrics_sudo=self.config.telemetry.powermetrics_sudo,
        )
        self.poller = Poller(self.provider, self.state, period_ms=self.config.poll.poll_ms)
        self.renderer = DashboardRenderer()

        self._cpu_power_text = "0 W"
        self._gpu_power_text = "0 W"
        self._total_power_text = "0 W"
        self._memory_text = "0 B / 0 B"
        self._carbon_text = "--"
        self._gpu_usage_text = "--"
        self._error_text = ""
        self._preview_png = b""

        # Rendering is paced independently of poll ticks.
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.refresh)
        self._timer.start(self.config.ui.refresh_ms)

    @Property(str, notify=cpuPowerTextChanged)
    def cpuPowerText(self) -> str:
        return self._cpu_power_text

    @Property(str, notify=gpuPowerTextChanged)
    def gpuPowerText(self) -> str:
        return self._gpu_power_text

    @Property(str, notify=totalPowerTextChanged)
    def totalPowerText(self) -> str:
        return self._total_power_text

    @Property(str, notify=memoryTextChanged)
    def memoryText(self) -> str:
        return self._memory_text

    @Property(str, notify=carbonTextChanged)
    def carbonText(self) -> str:
        return self._carbon_text

    @Property(str, notify=gpuUsageTextChanged)
    def gpuUsageText(self) -> str:
        return self._gpu_usage_text

    @Property(str, notify=errorTextChanged)
    def errorText(self) -> str:
        return self._error_text

    @Property(bool, notify=pollingChanged)
    def polling(self) -> bool:
        return self.poller.running

    def preview_png(self) -> bytes:
        return self._preview_png

    def _set_text(self, field: str, value: str, signal: Signal) -> None:
        if getattr(self, field) != value:
            setattr(self, field, value)
            signal.emit()

    @Slot()
    def refresh(self) -> None:
        snap = self.state.read()
        view = build_view(snap.current, snap.window, snap.error, self.config.ui.time_format)
        r = view.readouts

        self._set_text("_cpu_power_text", r.cpu_power, self.cpuPowerTextChanged)
        self._set_text("_gpu_power_text", r.gpu_power, self.gpuPowerTextChanged)
        self._set_text("_total_power_text", r.total_power, self.totalPowerTextChanged)
        self._set_text("_memory_text", f"{r.memory_used} / {r.memory_total}", self.memoryTextChanged)
        self._set_text("_carbon_text", r.carbon_intensity, self.carbonTextChanged)
        self._set_text("_gpu_usage_text", r.gpu_usage_text, self.gpuUsageTextChanged)
        self._set_text("_error_text", view.error or "", self.errorTextChanged)

        png = self.renderer.render_png(view, self.config.ui.dashboard_theme)
        if png != self._preview_png:
            self._preview_png = png
            self.previewChanged.emit()

    @Slot()
    def startPolling(self) -> None:
        if self.poller.running:
            return
        self.poller.start()
        self.pollingChanged.emit()
        self.refresh()

    @Slot()
    def stopPolling(self) -> None:
        if not self.poller.running:
            return
        self.poller.stop()
        self.pollingChanged.emit()

    def shutdown(self) -> None:
        self._timer.stop()
        self.stopPolling()
        self.poller.wait_stopped(timeout=2.0)


class DashboardWindow(QWidget):
    def __init__(self, vm: PowerDashViewModel) -> None:
        super().__init__()
        self.vm = vm
        self.setWindowTitle(f"PowerDash {_app_version()}")

        self._error = QLabel()
        self._error.setWordWrap(True)
        self._error.setStyleSheet("background: #7A1F2B; color: #F4F7FF; padding: 6px; border-radius: 6px;")
        self._error.hide()

        self._preview = QLabel()
        self._preview.setAlignment(Qt.AlignmentFlag.AlignCenter)

        layout = QVBoxLayout(self)
        layout.addWidget(self._error)
        layout.addWidget(self._preview)

        vm.errorTextChanged.connect(self._on_error)
        vm.previewChanged.connect(self._on_preview)
        self._on_preview()

    def _on_error(self) -> None:
        text = self.vm.errorText
        self._error.setText(text)
        self._error.setVisible(bool(text))

    def _on_preview(self) -> None:
        data = self.vm.preview_png()
        if not data:
            return
        pixmap = QPixmap()
        pixmap.loadFromData(data, "PNG")
        self._preview.setPixmap(pixmap)


def run_gui() -> int:
    cfg = load_config()
    configure_logging(keep_files=cfg.diagnostics.keep_log_files)
    install_crash_hooks()
    logger = get_logger()

    os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")
    app = QApplication(sys.argv)
    app.setApplicationName("PowerDash")

    vm = PowerDashViewModel(cfg)
    window = DashboardWindow(vm)
    window.show()
    vm.startPolling()

    tray = None
    if QSystemTrayIcon.isSystemTrayAvailable():
        tray = QSystemTrayIcon(QIcon.fromTheme("utilities-system-monitor"), app)
        tray.setToolTip("PowerDash")
        menu = QMenu()

        start_action = QAction("Start Polling", menu)
        start_action.triggered.connect(vm.startPolling)
        menu.addAction(start_action)

        stop_action = QAction("Stop Polling", menu)
        stop_action.triggered.connect(vm.stopPolling)
        menu.addAction(stop_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(app.quit)
        menu.addAction(quit_action)

        tray.setContextMenu(menu)
        tray.show()

    exit_code = app.exec()
    vm.shutdown()
    logger.info("app shutdown", extra={"event": "shutdown"})
    uninstall_crash_hooks()
    return int(exit_code)
