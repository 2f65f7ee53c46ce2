"""
Release Upgrader - self-upgrade engine for release-archive based projects.

This package checks a remote release source for newer versions, decides
whether an upgrade is needed and safe, downloads the release archive and
installs it over the project directory while preserving excluded resources.
"""

__version__ = "0.1.0"
