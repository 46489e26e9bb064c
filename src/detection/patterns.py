"""Built-in error signature catalog and generic error indicator words.

Both are built once on first use and shared read-only by every classifier
in the process.
"""

from __future__ import annotations

import re
from functools import cache

from src.models.errors import ErrorPattern

_CATALOG_SPEC: list[dict] = [
    # Network / connection
    {
        "name": "NetworkTimeout",
        "category": "network",
        "pattern": r"(?i)(timeout|timed out|connection timed|network timeout|request timeout)",
        "severity": "high",
        "confidence": 0.85,
        "description": "Network connection or request timeout",
        "suggestions": (
            "Increase timeout duration",
            "Check network connectivity",
            "Implement retry mechanism",
            "Verify endpoint availability",
        ),
        "tags": ("network", "timeout", "connection"),
    },
    {
        "name": "ConnectionRefused",
        "category": "network",
        "pattern": r"(?i)(connection refused|conn refused|cannot connect|unable to connect)",
        "severity": "high",
        "confidence": 0.90,
        "description": "Server connection refused",
        "suggestions": (
            "Verify server is running",
            "Check firewall settings",
            "Verify correct port and address",
            "Ensure server is accepting connections",
        ),
        "tags": ("network", "connection", "refused"),
    },
    # UI / element
    {
        "name": "ElementNotFound",
        "category": "ui",
        "pattern": r"(?i)(element not found|no such element|unable to locate element|element.*not found)",
        "severity": "medium",
        "confidence": 0.75,
        "description": "UI element not found on page",
        "suggestions": (
            "Wait for element to load",
            "Check element selector accuracy",
            "Verify element is present in DOM",
            "Use alternative locator strategy",
        ),
        "tags": ("ui", "element", "locator"),
    },
    {
        "name": "ElementNotClickable",
        "category": "ui",
        "pattern": r"(?i)(element not clickable|not clickable|element.*obscured|element.*covered)",
        "severity": "medium",
        "confidence": 0.70,
        "description": "Element cannot be clicked",
        "suggestions": (
            "Scroll element into view",
            "Wait for element to be visible",
            "Check if element is enabled",
            "Use JavaScript click as fallback",
        ),
        "tags": ("ui", "click", "visibility"),
    },
    # Authentication
    {
        "name": "AuthenticationFailed",
        "category": "authentication",
        "pattern": r"(?i)(unauthorized|authentication failed|login failed|invalid credentials|access denied)",
        "severity": "high",
        "confidence": 0.85,
        "description": "Authentication or authorization failed",
        "suggestions": (
            "Verify username and password",
            "Check authentication service status",
            "Verify user permissions",
            "Check session token validity",
        ),
        "tags": ("auth", "login", "security"),
    },
    {
        "name": "SessionExpired",
        "category": "authentication",
        "pattern": r"(?i)(session expired|session timeout|invalid session|token expired)",
        "severity": "medium",
        "confidence": 0.80,
        "description": "User session has expired",
        "suggestions": (
            "Implement session refresh",
            "Show session expiration warning",
            "Auto-redirect to login page",
            "Extend session timeout",
        ),
        "tags": ("auth", "session", "timeout"),
    },
    # Form / validation
    {
        "name": "ValidationError",
        "category": "validation",
        "pattern": r"(?i)(validation error|invalid input|field.*required|format.*invalid)",
        "severity": "low",
        "confidence": 0.65,
        "description": "Form validation failed",
        "suggestions": (
            "Provide valid input format",
            "Fill required fields",
            "Check field constraints",
            "Display clear error messages",
        ),
        "tags": ("form", "validation", "input"),
    },
    {
        "name": "RequiredFieldMissing",
        "category": "validation",
        "pattern": r"(?i)(required field|field.*required|missing.*field|field.*missing)",
        "severity": "low",
        "confidence": 0.70,
        "description": "Required form field is missing",
        "suggestions": (
            "Fill all required fields",
            "Mark required fields clearly",
            "Add field validation indicators",
            "Provide helpful field labels",
        ),
        "tags": ("form", "validation", "required"),
    },
    # Performance
    {
        "name": "PageLoadTimeout",
        "category": "performance",
        "pattern": r"(?i)(page.*timeout|load timeout|page not loading|slow page)",
        "severity": "high",
        "confidence": 0.75,
        "description": "Page failed to load within timeout",
        "suggestions": (
            "Increase page load timeout",
            "Check page size and complexity",
            "Optimize page resources",
            "Check server response time",
        ),
        "tags": ("performance", "timeout", "load"),
    },
    {
        "name": "ElementLoadTimeout",
        "category": "performance",
        "pattern": r"(?i)(element.*timeout|element.*not loaded|wait.*timeout)",
        "severity": "medium",
        "confidence": 0.70,
        "description": "Element failed to load within timeout",
        "suggestions": (
            "Increase element wait timeout",
            "Check element dependencies",
            "Verify element exists in page source",
            "Use explicit wait conditions",
        ),
        "tags": ("performance", "element", "timeout"),
    },
    # JavaScript / runtime
    {
        "name": "JavaScriptError",
        "category": "javascript",
        "pattern": r"(?i)(javascript error|script error|js error|runtime error)",
        "severity": "high",
        "confidence": 0.80,
        "description": "JavaScript runtime error occurred",
        "suggestions": (
            "Check browser console for details",
            "Verify script syntax",
            "Debug JavaScript code",
            "Check for undefined variables",
        ),
        "tags": ("javascript", "runtime", "error"),
    },
    {
        "name": "UndefinedReference",
        "category": "javascript",
        "pattern": r"(?i)(undefined|not defined|null.*reference|object.*null)",
        "severity": "medium",
        "confidence": 0.75,
        "description": "JavaScript undefined or null reference",
        "suggestions": (
            "Check variable declarations",
            "Add null/undefined checks",
            "Initialize variables properly",
            "Debug object references",
        ),
        "tags": ("javascript", "undefined", "reference"),
    },
    # Database / system
    {
        "name": "DatabaseError",
        "category": "database",
        "pattern": r"(?i)(database error|sql error|connection.*failed|query.*failed)",
        "severity": "high",
        "confidence": 0.85,
        "description": "Database operation failed",
        "suggestions": (
            "Check database connection",
            "Verify SQL query syntax",
            "Check database permissions",
            "Review database logs",
        ),
        "tags": ("database", "sql", "connection"),
    },
    {
        "name": "FileNotFoundError",
        "category": "filesystem",
        "pattern": r"(?i)(file not found|no such file|path.*not found|file.*missing)",
        "severity": "medium",
        "confidence": 0.80,
        "description": "File or directory not found",
        "suggestions": (
            "Verify file path exists",
            "Check file permissions",
            "Ensure file is not deleted",
            "Use absolute file paths",
        ),
        "tags": ("filesystem", "file", "path"),
    },
    # Navigation
    {
        "name": "NavigationFailed",
        "category": "navigation",
        "pattern": r"(?i)(navigation failed|net::err_\w+|err_name_not_resolved|page crashed)",
        "severity": "high",
        "confidence": 0.80,
        "description": "Browser navigation did not complete",
        "suggestions": (
            "Verify the target URL",
            "Check DNS resolution",
            "Check for redirects or blocked requests",
            "Retry navigation after network recovers",
        ),
        "tags": ("navigation", "url", "browser"),
    },
    # Accessibility
    {
        "name": "AccessibilityViolation",
        "category": "accessibility",
        "pattern": r"(?i)(accessibility violation|missing alt text|insufficient color contrast|no accessible name)",
        "severity": "medium",
        "confidence": 0.75,
        "description": "Accessibility rule violated",
        "suggestions": (
            "Add alternative text to images",
            "Provide accessible names for controls",
            "Raise color contrast",
            "Run an automated accessibility audit",
        ),
        "tags": ("accessibility", "a11y"),
    },
]

_INDICATORS: tuple[str, ...] = (
    "error", "failed", "failure", "exception", "fault",
    "crash", "panic", "abort", "terminate", "unable",
    "cannot", "could not", "not possible", "invalid",
    "incorrect", "wrong", "bad", "malformed",
)


@cache
def error_patterns() -> tuple[ErrorPattern, ...]:
    """Return the shared, immutable error pattern catalog."""
    return tuple(
        ErrorPattern(**{**spec, "pattern": re.compile(spec["pattern"])})
        for spec in _CATALOG_SPEC
    )


@cache
def error_indicators() -> tuple[str, ...]:
    """Return the generic error indicator words (lower case)."""
    return tuple(word.lower() for word in _INDICATORS)


def contains_error_indicator(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in error_indicators())
