# ui/main_window.py
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QProgressBar,
    QMenu, QSystemTrayIcon
)

from plexrpc.config import load_config
from plexrpc.factory import build_engine
from .worker import MonitorWorker

PRIMARY = "#e5a00d"
BG = "#1f2326"


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()

        self.setWindowTitle("Plex Discord RPC")
        self.setFixedSize(460, 420)

        self.config = load_config()
        self.worker = None
        self._tray = None
        self._icon = self._load_app_icon()
        self._force_quit = False

        root = QWidget()
        root.setObjectName("Root")
        layout = QVBoxLayout(root)
        layout.setAlignment(Qt.AlignTop)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(16)

        layout.addWidget(self._build_server_card())
        layout.addWidget(self._build_now_card())
        layout.addWidget(self._build_controls())

        self.setCentralWidget(root)
        self._apply_styles()

        self._init_tray()
        if self._icon:
            self.setWindowIcon(self._icon)

        self._start_worker()

    # ==================================================
    # LAYOUT
    # ==================================================

    def _build_server_card(self):
        card = QFrame()
        card.setObjectName("GlassCard")
        v = QVBoxLayout(card)
        v.setContentsMargins(20, 18, 20, 18)
        v.setSpacing(4)

        target = self.config.target()
        title = QLabel(str(target) if target else "No server selected")
        title.setObjectName("DashTitle")

        sub = QLabel(
            ("Owned server · polling" if target.owned else "Shared server · notifications")
            if target else "Set PLEX_SERVER_ADDRESS to start"
        )
        sub.setObjectName("DashMuted")

        v.addWidget(title)
        v.addWidget(sub)
        return card

    def _build_now_card(self):
        card = QFrame()
        card.setObjectName("NowCard")
        v = QVBoxLayout(card)
        v.setContentsMargins(26, 24, 26, 24)
        v.setSpacing(8)

        self.d_title = QLabel("Nothing playing")
        self.d_title.setObjectName("MediaTitle")
        self.d_title.setWordWrap(True)
        self.d_title.setAlignment(Qt.AlignCenter)

        self.d_subtitle = QLabel("—")
        self.d_subtitle.setWordWrap(True)
        self.d_subtitle.setAlignment(Qt.AlignCenter)

        self.d_progress = QProgressBar()
        self.d_progress.setObjectName("MediaProgress")
        self.d_progress.setRange(0, 1000)
        self.d_progress.setTextVisible(False)
        self.d_progress.setFixedHeight(8)

        self.d_status = QLabel("Starting…")
        self.d_status.setObjectName("StatusLine")
        self.d_status.setAlignment(Qt.AlignCenter)
        self.d_status.setWordWrap(True)

        v.addWidget(self.d_title)
        v.addWidget(self.d_subtitle)
        v.addWidget(self.d_progress)
        v.addWidget(self.d_status)
        return card

    def _build_controls(self):
        row = QWidget()
        h = QHBoxLayout(row)
        h.setContentsMargins(0, 0, 0, 0)

        self.toggle_btn = QPushButton("Disconnect")
        self.toggle_btn.setObjectName("CTA")
        self.toggle_btn.clicked.connect(self._on_toggle_clicked)

        h.addWidget(self.toggle_btn)
        return row

    # ==================================================
    # WORKER HOOKUP
    # ==================================================

    def _start_worker(self):
        if self.worker:
            return

        self.worker = MonitorWorker(build_engine(self.config), self.config, parent=self)
        self.worker.status.connect(self._on_worker_status)
        self.worker.now_playing.connect(self._on_now_playing)
        self.worker.start()

    def _on_toggle_clicked(self):
        if not self.worker:
            return
        if self.toggle_btn.text() == "Disconnect":
            self.worker.disconnect_presence()
            self.toggle_btn.setText("Resume")
        else:
            self.worker.resume()
            self.toggle_btn.setText("Disconnect")

    def _on_worker_status(self, msg: str):
        self.d_status.setText(msg)

    def _on_now_playing(self, session: dict):
        title = (session.get("title") or "").strip()
        if not title:
            self.d_title.setText("Nothing playing")
            self.d_subtitle.setText("—")
            self.d_progress.setValue(0)
            return

        self.d_title.setText(title)
        parts = [session.get("grandparent_title"), session.get("parent_title")]
        self.d_subtitle.setText(" · ".join(p for p in parts if p) or "—")

        duration = session.get("duration") or 0
        elapsed = session.get("elapsed") or 0
        if duration > 0:
            self.d_progress.setValue(int(max(0.0, min(1.0, elapsed / duration)) * 1000))
        else:
            self.d_progress.setValue(0)

    # ==================================================
    # CLEAN SHUTDOWN
    # ==================================================

    def closeEvent(self, event):
        # Minimize to tray if available
        if self._tray and self._tray.isVisible() and not self._force_quit:
            self.hide()
            event.ignore()
            return

        self._stop_worker()
        event.accept()

    def _init_tray(self):
        if not QSystemTrayIcon.isSystemTrayAvailable():
            return

        tray = QSystemTrayIcon(self)
        tray.setToolTip("Plex Discord RPC")
        if self._icon:
            tray.setIcon(self._icon)

        menu = QMenu()
        action_show = menu.addAction("Show")
        action_quit = menu.addAction("Quit")

        action_show.triggered.connect(self._show_from_tray)
        action_quit.triggered.connect(self._quit_from_tray)

        tray.setContextMenu(menu)
        tray.show()
        self._tray = tray

    def _show_from_tray(self):
        self.show()
        self.raise_()
        self.activateWindow()

    def _quit_from_tray(self):
        self._force_quit = True
        self._stop_worker()
        app = QGuiApplication.instance()
        if app:
            app.quit()
        else:
            self.close()

    def _load_app_icon(self):
        icon_path = Path(__file__).resolve().parents[1] / "logo.png"
        if icon_path.exists():
            return QIcon(str(icon_path))
        return None

    def _stop_worker(self):
        if not self.worker:
            return
        self.worker.stop()
        if self.worker.isRunning():
            self.worker.wait(5000)
        self.worker = None

    # ==================================================
    # STYLES
    # ==================================================

    def _apply_styles(self):
        self.setStyleSheet(f"""
            QWidget {{ color: white; font-size: 13px; }}
            QWidget#Root {{ background-color: {BG}; }}

            QFrame#GlassCard {{ background-color: rgba(255,255,255,0.08); border-radius: 22px; }}
            QFrame#NowCard {{ background-color: rgba(255,255,255,0.14); border-radius: 28px; }}

            QLabel#DashTitle {{ font-size: 18px; font-weight: 800; }}
            QLabel#DashMuted, QLabel#StatusLine {{ font-size: 12px; color: rgba(255,255,255,0.70); }}
            QLabel#MediaTitle {{ font-size: 20px; font-weight: 900; }}

            QProgressBar#MediaProgress {{ background-color: rgba(255,255,255,0.22); border: 0px; }}
            QProgressBar#MediaProgress::chunk {{ background-color: {PRIMARY}; }}

            QPushButton#CTA {{
                background-color: {PRIMARY};
                color: {BG};
                border-radius: 16px;
                padding: 12px;
                font-weight: 800;
            }}
        """)
