"""Register the bridge as a native messaging host with Chrome and Firefox."""

from __future__ import annotations

import json
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from tabctl.config.loader import get_data_dir
from tabctl.config.schema import InstallConfig


@dataclass(slots=True)
class InstallResult:
    browser: str
    ok: bool
    manifest_path: str = ""
    host_script: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "browser": self.browser,
            "ok": self.ok,
            "manifestPath": self.manifest_path,
            "hostScript": self.host_script,
            "message": self.message,
        }


def manifest_dir(browser: str, *, platform: str | None = None, home: Path | None = None) -> Path:
    """NativeMessagingHosts directory for a browser on macOS or Linux."""
    plat = platform or sys.platform
    base = home or Path.home()
    if plat == "darwin":
        vendor = {"chrome": ("Google", "Chrome"), "firefox": ("Mozilla",)}[browser]
        return base.joinpath("Library", "Application Support", *vendor, "NativeMessagingHosts")
    if browser == "chrome":
        return base / ".config" / "google-chrome" / "NativeMessagingHosts"
    return base / ".mozilla" / "native-messaging-hosts"


def build_manifest(browser: str, host_script: Path, cfg: InstallConfig, chrome_extension_id: str = "") -> dict[str, Any]:
    manifest: dict[str, Any] = {
        "name": cfg.host_name,
        "description": "tabctl native messaging host",
        "path": str(host_script),
        "type": "stdio",
    }
    if browser == "chrome":
        manifest["allowed_origins"] = [f"chrome-extension://{chrome_extension_id}/"] if chrome_extension_id else []
    else:
        manifest["allowed_extensions"] = [cfg.firefox_extension_id]
    return manifest


def write_host_script(browser: str, bin_dir: Path | None = None) -> Path:
    """Write an executable wrapper that starts the bridge for one browser."""
    target_dir = bin_dir or (get_data_dir() / "bin")
    target_dir.mkdir(parents=True, exist_ok=True)
    script = target_dir / f"tabctl-host-{browser}.sh"
    script.write_text(
        "#!/bin/sh\n"
        f"exec {shlex.quote(sys.executable)} -m tabctl host --browser {shlex.quote(browser)} \"$@\"\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script


def install_native_hosts(
    cfg: InstallConfig,
    *,
    chrome_extension_id: str | None = None,
    platform: str | None = None,
    home: Path | None = None,
    bin_dir: Path | None = None,
) -> list[InstallResult]:
    """Write host wrappers and manifests. Chrome is skipped without an extension id."""
    extension_id = (chrome_extension_id or cfg.chrome_extension_id or "").strip()
    results: list[InstallResult] = []
    for browser in ("chrome", "firefox"):
        if browser == "chrome" and not extension_id:
            results.append(
                InstallResult(
                    browser=browser,
                    ok=False,
                    message="Skipping Chrome (no extension ID provided). Usage: tabctl install <chrome-extension-id>",
                )
            )
            continue
        try:
            host_script = write_host_script(browser, bin_dir)
            target = manifest_dir(browser, platform=platform, home=home)
            target.mkdir(parents=True, exist_ok=True)
            manifest_path = target / f"{cfg.host_name}.json"
            manifest = build_manifest(browser, host_script, cfg, extension_id)
            manifest_path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to install {} manifest: {}", browser, exc)
            results.append(InstallResult(browser=browser, ok=False, message=f"Failed to install {browser} manifest: {exc}"))
            continue
        logger.info("Installed {} native host manifest: {}", browser, manifest_path)
        results.append(
            InstallResult(
                browser=browser,
                ok=True,
                manifest_path=str(manifest_path),
                host_script=str(host_script),
                message=f"Installed {browser} native host manifest: {manifest_path}",
            )
        )
    return results
