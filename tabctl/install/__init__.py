"""Native messaging host installation."""

from tabctl.install.manifests import InstallResult, install_native_hosts

__all__ = ["InstallResult", "install_native_hosts"]
