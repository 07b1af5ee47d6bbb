"""
Embedded browser for the hosted web app: persistent profile, permissions,
external links and the injected page scripts.
"""
from pathlib import Path
from typing import Any, Callable

from PyQt6.QtCore import QFile, QIODevice, QUrl
from PyQt6.QtGui import QDesktopServices
from PyQt6.QtWebChannel import QWebChannel
from PyQt6.QtWebEngineCore import QWebEnginePage, QWebEngineProfile, QWebEngineScript
from PyQt6.QtWebEngineWidgets import QWebEngineView

from button_locator import ButtonLocator, render_invocation
from gui.bridge import BRIDGE_OBJECT_NAME, PageBridge
from gui.constants import logger, resource_path

# Page scripts and the web channel live in an isolated world: they share the
# DOM with the hosted app but not its JavaScript globals.
SCRIPT_WORLD_ID = QWebEngineScript.ScriptWorldId.ApplicationWorld.value

PAGE_SCRIPT_PATH = resource_path("gui/resources/page_bridge.js")
QWEBCHANNEL_JS = ":/qtwebchannel/qwebchannel.js"
HTTP_CACHE_BYTES = 100 * 1024 * 1024

_GRANTED_FEATURES = (QWebEnginePage.Feature.MediaAudioCapture,)


def create_profile(storage_dir: Path, parent=None) -> QWebEngineProfile:
    """Named on-disk profile so the web app's login survives restarts."""
    storage_dir.mkdir(parents=True, exist_ok=True)
    profile = QWebEngineProfile("VoiceNotes", parent)
    profile.setPersistentStoragePath(str(storage_dir / "storage"))
    profile.setCachePath(str(storage_dir / "cache"))
    profile.setPersistentCookiesPolicy(
        QWebEngineProfile.PersistentCookiesPolicy.ForcePersistentCookies
    )
    profile.setHttpCacheType(QWebEngineProfile.HttpCacheType.DiskHttpCache)
    profile.setHttpCacheMaximumSize(HTTP_CACHE_BYTES)
    logger.info(f"Web profile: persistent storage at {storage_dir}")
    return profile


def _read_qt_resource(path: str) -> str:
    resource = QFile(path)
    if not resource.open(QIODevice.OpenModeFlag.ReadOnly):
        raise OSError(f"Could not open Qt resource {path}")
    try:
        return bytes(resource.readAll()).decode("utf-8")
    finally:
        resource.close()


def _make_script(name: str, source: str,
                 injection_point: QWebEngineScript.InjectionPoint) -> QWebEngineScript:
    script = QWebEngineScript()
    script.setName(name)
    script.setSourceCode(source)
    script.setInjectionPoint(injection_point)
    script.setWorldId(SCRIPT_WORLD_ID)
    script.setRunsOnSubFrames(False)
    return script


class VoiceNotesPage(QWebEnginePage):
    """Page that only trusts the hosted app's domain."""

    def __init__(self, profile: QWebEngineProfile, allowed_domain: str, parent=None):
        super().__init__(profile, parent)
        self._allowed_domain = allowed_domain.lower()
        self.featurePermissionRequested.connect(self._on_feature_permission_requested)

    def is_allowed_url(self, url: QUrl) -> bool:
        host = url.host().lower()
        return host == self._allowed_domain or host.endswith("." + self._allowed_domain)

    def createWindow(self, window_type: QWebEnginePage.WebWindowType) -> QWebEnginePage:
        # The popup's first URL decides where it goes; see _PopupInterceptor.
        return _PopupInterceptor(self.profile(), self)

    def javaScriptConsoleMessage(self, level, message: str, line: int, source_id: str):
        logger.debug(f"Page console: {message} ({source_id}:{line})")

    def _on_feature_permission_requested(self, origin: QUrl, feature: QWebEnginePage.Feature):
        granted = feature in _GRANTED_FEATURES and self.is_allowed_url(origin)
        policy = (QWebEnginePage.PermissionPolicy.PermissionGrantedByUser if granted
                  else QWebEnginePage.PermissionPolicy.PermissionDeniedByUser)
        logger.info(f"Permission {feature.name} for {origin.toString()}: "
                    f"{'granted' if granted else 'denied'}")
        self.setFeaturePermission(origin, feature, policy)


class _PopupInterceptor(QWebEnginePage):
    """Catches ``window.open``: app URLs load in the main view, others open externally."""

    def __init__(self, profile: QWebEngineProfile, opener: VoiceNotesPage):
        super().__init__(profile, opener)
        self._opener = opener
        self.urlChanged.connect(self._on_url_changed)

    def _on_url_changed(self, url: QUrl):
        if url.isEmpty():
            return
        if self._opener.is_allowed_url(url):
            self._opener.setUrl(url)
        else:
            logger.info(f"Opening external link in browser: {url.toString()}")
            QDesktopServices.openUrl(url)
        self.urlChanged.disconnect(self._on_url_changed)
        self.deleteLater()


class VoiceNotesView(QWebEngineView):
    """Web view hosting the app with the page bridge and augmentation script installed."""

    def __init__(self, profile: QWebEngineProfile, allowed_domain: str,
                 bridge: PageBridge, locator: ButtonLocator, parent=None):
        super().__init__(parent)
        page = VoiceNotesPage(profile, allowed_domain, self)
        self.setPage(page)

        self._channel = QWebChannel(page)
        self._channel.registerObject(BRIDGE_OBJECT_NAME, bridge)
        page.setWebChannel(self._channel, SCRIPT_WORLD_ID)

        self._install_scripts(page, locator)

    def _install_scripts(self, page: QWebEnginePage, locator: ButtonLocator):
        scripts = page.scripts()
        try:
            scripts.insert(_make_script(
                "qwebchannel", _read_qt_resource(QWEBCHANNEL_JS),
                QWebEngineScript.InjectionPoint.DocumentCreation,
            ))
        except OSError as e:
            logger.error(f"Web view: page bridge unavailable: {e}")
            return
        try:
            template = PAGE_SCRIPT_PATH.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Web view: could not read page script {PAGE_SCRIPT_PATH}: {e}")
            return
        scripts.insert(_make_script(
            "voicenotes-page-bridge", locator.render_page_script(template),
            QWebEngineScript.InjectionPoint.DocumentReady,
        ))
        logger.debug("Web view: page scripts installed")

    def invoke_page_function(self, function_name: str, callback: Callable[[Any], None]):
        """Run a ``window.voiceNotesWrapper`` function; *callback* receives its result."""
        self.page().runJavaScript(render_invocation(function_name), SCRIPT_WORLD_ID, callback)
