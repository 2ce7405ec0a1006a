"""Exceptions raised by the suite's orchestration layer.

Locator resolution failures are never raised: they come back as
``NotFound`` results or empty lists and are judged by the caller.
"""

from __future__ import annotations


class SuiteError(Exception):
    """Base class for errors raised by the suite."""


class AuthenticationError(SuiteError):
    """Session is invalid and login could not establish a new one."""


class NavigationError(SuiteError):
    """A page did not end up where the flow expected it to."""


class EditorLoadError(NavigationError):
    """The Form Builder editor UI never became ready."""


class ResolutionError(SuiteError):
    """A step with no further fallback could not find its element."""


class VerificationError(SuiteError, AssertionError):
    """A page-level check found a value different from the expected one."""
