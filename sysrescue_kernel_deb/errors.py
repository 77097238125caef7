from __future__ import annotations


class KernelDebError(RuntimeError):
    """Fatal error; aborts the run with ``exit_code``."""

    exit_code = 1
    step: str | None = None


class UsageError(KernelDebError):
    """Bad invocation: missing/invalid argument or insufficient privilege."""


class DiscoveryError(KernelDebError):
    """An expected artifact is missing from the mounted image."""


class MountError(KernelDebError):
    """A loop mount failed, e.g. the filesystem type is unsupported."""


class BuildError(KernelDebError):
    """The host could not produce the package (dpkg, dpkg-deb)."""
