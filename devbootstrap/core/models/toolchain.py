"""
Toolchain catalog models — the validated form of ``core/data/toolchain.yml``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

HostName = Literal["debian", "arch", "windows"]


class PackageRepository(BaseModel):
    """An extra apt source that must exist before a package can install."""

    name: str
    key_url: str
    keyring: str
    source: str


class ManagerBootstrap(BaseModel):
    """How to install the package manager itself when it is missing."""

    url: str
    install_root: str
    entry_point: str


class HostProfile(BaseModel):
    package_manager: Literal["apt", "pacman", "choco"]
    core_packages: list[str] = Field(default_factory=list)
    language_sdk_packages: list[str] = Field(default_factory=list)
    repositories: list[PackageRepository] = Field(default_factory=list)
    bootstrap: ManagerBootstrap | None = None


class PerOs(BaseModel):
    """A value that differs between POSIX hosts and Windows."""

    posix: str
    windows: str

    def pick(self, host: str) -> str:
        return self.windows if host == "windows" else self.posix


class DownloadUrls(BaseModel):
    linux: str
    windows: str

    def pick(self, host: str) -> str:
        return self.windows if host == "windows" else self.linux


class VersionPinSettings(BaseModel):
    file: str = ".fvm/fvm_config.json"
    field: str = "flutterSdkVersion"
    default: str = "3.32.6"


class AndroidSettings(BaseModel):
    sdk_root: PerOs
    cmdline_tools_url: DownloadUrls
    platform: str
    build_tools: str
    system_image: str
    license_accept_limit: int = 30

    @property
    def components(self) -> list[str]:
        """The fixed component list handed to ``sdkmanager --install``."""
        return [
            "platform-tools",
            f"platforms;{self.platform}",
            f"build-tools;{self.build_tools}",
            "cmdline-tools;latest",
            self.system_image,
        ]


class KeystoreSettings(BaseModel):
    path: str
    alias: str = "androiddebugkey"
    password: str = "android"
    dname: str = "CN=Android Debug,O=Android,C=US"
    validity_days: int = 10000


class SwapSettings(BaseModel):
    path: str = "/myswap"
    min_kib: int = 2097152
    size_mib: int = 2048


class SshSettings(BaseModel):
    default_key: str = "id_ed25519"


class Toolchain(BaseModel):
    """The full static catalog."""

    version_pin: VersionPinSettings = Field(default_factory=VersionPinSettings)
    hosts: dict[HostName, HostProfile]
    pub_cache_bin: PerOs
    android: AndroidSettings
    debug_keystore: KeystoreSettings
    swap: SwapSettings = Field(default_factory=SwapSettings)
    ssh: SshSettings = Field(default_factory=SshSettings)
    fallback_locations: dict[str, list[str]] = Field(default_factory=dict)

    def host_profile(self, host: str) -> HostProfile:
        try:
            return self.hosts[host]  # type: ignore[index]
        except KeyError:
            raise ValueError(f"No toolchain profile for host '{host}'") from None

    def fallbacks_for(self, tool: str) -> list[str]:
        return list(self.fallback_locations.get(tool, []))
