"""Repackage a SystemRescue kernel as an installable Debian package.

Core design goals:
- One linear pass: mount, discover, stage, describe, build
- Fail fast on the build host, tolerate failures in the install hooks
- Every mount released and every temporary path removed on exit
- Reproducible archives for identical inputs
"""

__all__ = []
