"""
Update Manager - one interface for the package managers on a host.

Checks winget, proto, moon, the Claude CLI, bun, npm, pnpm, PowerShell
modules, Chocolatey and Scoop for pending updates concurrently, and applies
them one at a time.
"""

__version__ = "0.1.0"
