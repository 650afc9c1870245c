import json
import os
import sys

from tabctl.config.schema import InstallConfig
from tabctl.install import install_native_hosts
from tabctl.install.manifests import build_manifest, manifest_dir


def test_manifest_dirs_per_platform(tmp_path):
    assert manifest_dir("chrome", platform="linux", home=tmp_path) == tmp_path / ".config/google-chrome/NativeMessagingHosts"
    assert manifest_dir("firefox", platform="linux", home=tmp_path) == tmp_path / ".mozilla/native-messaging-hosts"
    assert manifest_dir("chrome", platform="darwin", home=tmp_path) == (
        tmp_path / "Library/Application Support/Google/Chrome/NativeMessagingHosts"
    )
    assert manifest_dir("firefox", platform="darwin", home=tmp_path) == (
        tmp_path / "Library/Application Support/Mozilla/NativeMessagingHosts"
    )


def test_build_manifest_allow_lists(tmp_path):
    cfg = InstallConfig()
    chrome = build_manifest("chrome", tmp_path / "h.sh", cfg, "abc")
    assert chrome["name"] == "tabctl"
    assert chrome["type"] == "stdio"
    assert chrome["allowed_origins"] == ["chrome-extension://abc/"]
    firefox = build_manifest("firefox", tmp_path / "h.sh", cfg)
    assert firefox["allowed_extensions"] == ["tabctl@tabctl"]
    assert "allowed_origins" not in firefox


def test_install_skips_chrome_without_extension_id(tmp_path):
    results = install_native_hosts(InstallConfig(), platform="linux", home=tmp_path, bin_dir=tmp_path / "bin")
    by_browser = {r.browser: r for r in results}
    assert by_browser["chrome"].ok is False
    assert "Skipping Chrome" in by_browser["chrome"].message
    assert by_browser["firefox"].ok is True

    manifest = json.loads((tmp_path / ".mozilla/native-messaging-hosts/tabctl.json").read_text())
    script = tmp_path / "bin" / "tabctl-host-firefox.sh"
    assert manifest["path"] == str(script)
    assert os.access(script, os.X_OK)
    body = script.read_text()
    assert "-m tabctl host --browser firefox" in body
    assert sys.executable in body


def test_install_both_with_extension_id(tmp_path):
    results = install_native_hosts(
        InstallConfig(),
        chrome_extension_id="abcdefghijklmnop",
        platform="linux",
        home=tmp_path,
        bin_dir=tmp_path / "bin",
    )
    assert [r.ok for r in results] == [True, True]
    assert results[0].to_dict()["hostScript"].endswith("tabctl-host-chrome.sh")
    manifest = json.loads((tmp_path / ".config/google-chrome/NativeMessagingHosts/tabctl.json").read_text())
    assert manifest["allowed_origins"] == ["chrome-extension://abcdefghijklmnop/"]
    assert manifest["path"].endswith("tabctl-host-chrome.sh")
