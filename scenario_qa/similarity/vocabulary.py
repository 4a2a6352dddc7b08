"""Closed keyword vocabularies used by the scorers and classifiers.

Every category is an enum member carrying its own keyword list, so a
scorer can only ever ask about a category that exists.  Keywords are
written in plain English here and stemmed once at import time with the
same stemmer the scorers apply to scenario text.
"""

from __future__ import annotations

import enum

from scenario_qa.similarity.text import stem


def _stems(words: tuple[str, ...]) -> frozenset[str]:
    return frozenset(stem(w) for w in words)


# ---------------------------------------------------------------------------
# Business concepts
# ---------------------------------------------------------------------------


class ConceptType(enum.Enum):
    """Typed business concepts a scenario can be reduced to."""

    ENTITY = ("entity", (
        "user", "admin", "customer", "account", "profile", "order", "product",
        "cart", "item", "invoice", "payment", "report", "dashboard", "document",
        "file", "message", "notification", "setting", "feature", "flag", "page",
        "form", "record", "role", "permission", "password", "email", "session",
        "token", "api", "catalog", "inventory", "subscription", "transaction",
    ))
    ACTION = ("action", (
        "login", "logout", "create", "add", "update", "edit", "modify", "delete",
        "remove", "view", "search", "filter", "sort", "submit", "upload",
        "download", "export", "import", "register", "enable", "disable",
        "toggle", "approve", "reject", "cancel", "navigate", "click", "select",
        "enter", "save", "send", "pay", "checkout", "reset", "verify", "sign",
        "purchase", "refund", "assign", "share",
    ))
    OUTCOME = ("outcome", (
        "success", "successful", "error", "fail", "failure", "display", "show",
        "redirect", "receive", "see", "confirm", "confirmation", "deny",
        "denied", "appear", "visible", "block", "grant", "complete", "warning",
    ))
    CONDITION = ("condition", (
        "valid", "invalid", "empty", "expired", "locked", "missing", "duplicate",
        "incorrect", "required", "unauthorized", "wrong", "without", "exceed",
        "timeout", "inactive", "active", "unverified", "verified",
    ))
    DATA_VARIATION = ("data_variation", (
        "multiple", "single", "large", "special", "boundary", "maximum",
        "minimum", "different", "various", "each", "every", "zero", "negative",
        "unicode", "long", "short", "bulk",
    ))

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = _stems(keywords)


# ---------------------------------------------------------------------------
# Workflow taxonomy
# ---------------------------------------------------------------------------


class WorkflowCategory(enum.Enum):
    """Business-process category of a scenario.

    ``GENERAL`` is the catch-all and must stay last so that keyword ties
    resolve to a concrete category first.
    """

    AUTHENTICATION = ("authentication", (
        "login", "logout", "sign", "password", "credential", "authenticate",
        "session", "otp", "mfa", "sso",
    ))
    USER_MANAGEMENT = ("user_management", (
        "profile", "register", "registration", "signup", "invite", "role",
        "member", "deactivate", "onboarding",
    ))
    PAYMENT = ("payment", (
        "payment", "pay", "card", "refund", "billing", "invoice", "charge",
        "checkout", "price", "discount", "coupon",
    ))
    ORDER_MANAGEMENT = ("order_management", (
        "order", "cart", "basket", "shipping", "delivery", "purchase",
        "fulfillment", "return",
    ))
    SEARCH = ("search", ("search", "filter", "sort", "query", "find", "lookup", "result"))
    NAVIGATION = ("navigation", ("navigate", "menu", "link", "page", "redirect", "breadcrumb", "tab"))
    DATA_ENTRY = ("data_entry", ("form", "field", "input", "enter", "fill", "submit", "validation"))
    REPORTING = ("reporting", ("report", "dashboard", "chart", "analytics", "metric", "summary", "statistic"))
    NOTIFICATION = ("notification", ("notification", "email", "alert", "sms", "push", "reminder", "message"))
    CONFIGURATION = ("configuration", (
        "setting", "configuration", "config", "preference", "feature", "flag",
        "toggle", "enable", "disable",
    ))
    INTEGRATION = ("integration", ("api", "endpoint", "webhook", "integration", "sync", "import", "export", "request"))
    FILE_MANAGEMENT = ("file_management", ("file", "upload", "download", "attachment", "document", "pdf", "csv"))
    ACCESS_CONTROL = ("access_control", ("permission", "access", "authorize", "unauthorized", "forbidden", "privilege", "grant"))
    PERFORMANCE = ("performance", ("performance", "load", "latency", "response", "concurrent", "throughput", "speed"))
    ERROR_HANDLING = ("error_handling", ("error", "exception", "failure", "retry", "fallback", "crash", "recover"))
    GENERAL = ("general", ())

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = _stems(keywords)


# ---------------------------------------------------------------------------
# Business impact
# ---------------------------------------------------------------------------


class ImpactLevel(enum.Enum):
    """Business impact level, checked from most to least severe."""

    CRITICAL = ("critical", "revenue, security or data integrity at risk", (
        "payment", "pay", "checkout", "refund", "security", "password",
        "login", "unauthorized", "breach", "delete", "data", "billing",
    ))
    HIGH = ("high", "core user workflow", (
        "create", "submit", "order", "register", "save", "update", "upload",
        "approve", "purchase", "account",
    ))
    MEDIUM = ("medium", "validation or error handling", (
        "invalid", "error", "validation", "warning", "required", "fail",
        "empty", "missing",
    ))
    LOW = ("low", "cosmetic or informational behavior", ())

    def __init__(self, label: str, summary: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.summary = summary
        self.keywords = _stems(keywords)

    @property
    def summary_text(self) -> str:
        return f"{self.label}: {self.summary}"


# ---------------------------------------------------------------------------
# Contextual indicators
# ---------------------------------------------------------------------------


class ContextIndicator(enum.Enum):
    """Free-text hints about where, for whom and on what data a scenario runs."""

    ENVIRONMENT = ("environment", (
        "mobile", "desktop", "tablet", "browser", "web", "chrome", "firefox",
        "safari", "staging", "production", "ios", "android", "offline",
    ))
    USER_CONTEXT = ("user_context", (
        "admin", "guest", "anonymous", "registered", "premium", "new",
        "returning", "authenticated", "unauthenticated",
    ))
    DATA_SHAPE = ("data_shape", (
        "empty", "large", "single", "multiple", "bulk", "list", "table", "csv",
        "json", "paginated",
    ))

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = _stems(keywords)


PRIORITY_KEYWORDS = _stems((
    "critical", "blocker", "smoke", "sanity", "regression", "p0", "p1", "p2", "p3",
))


# ---------------------------------------------------------------------------
# Data variations
# ---------------------------------------------------------------------------


class VariationKind(enum.Enum):
    """Axes along which otherwise identical scenarios are commonly varied."""

    ROLE = ("role", (
        "admin", "administrator", "manager", "editor", "viewer", "owner",
        "guest", "customer", "member", "operator", "superuser",
    ))
    ENVIRONMENT = ("environment", (
        "mobile", "desktop", "tablet", "chrome", "firefox", "safari", "edge",
        "staging", "production", "ios", "android",
    ))
    DATASET = ("dataset", (
        "empty", "large", "small", "single", "multiple", "boundary", "unicode",
        "null", "maximum", "minimum", "special", "dataset",
    ))
    PERMISSION = ("permission", (
        "read", "write", "readonly", "restricted", "granted", "revoked",
        "privileged", "unprivileged",
    ))

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = _stems(keywords)


# ---------------------------------------------------------------------------
# Weighting signals
# ---------------------------------------------------------------------------


class SignalKind(enum.Enum):
    """Language families that steer the choice of weight profile."""

    ERROR_HANDLING = ("error_handling", (
        "error", "exception", "fail", "failure", "invalid", "incorrect",
        "reject", "denied", "timeout", "retry", "wrong",
    ))
    PERFORMANCE = ("performance", (
        "performance", "latency", "load", "throughput", "concurrent", "response",
        "second", "millisecond", "stress", "scalability",
    ))
    SECURITY = ("security", (
        "security", "unauthorized", "forbidden", "permission", "encrypt",
        "token", "csrf", "xss", "injection", "authorization", "privilege",
    ))

    def __init__(self, label: str, keywords: tuple[str, ...]) -> None:
        self.label = label
        self.keywords = _stems(keywords)


# ---------------------------------------------------------------------------
# Synonyms
# ---------------------------------------------------------------------------

SYNONYM_GROUPS: tuple[tuple[str, ...], ...] = (
    ("login", "signin", "authenticate", "logon"),
    ("logout", "signout", "logoff"),
    ("create", "add", "new", "register"),
    ("delete", "remove", "erase", "destroy"),
    ("update", "edit", "modify", "change"),
    ("view", "see", "display", "show", "visible", "appear"),
    ("submit", "send", "save", "confirm"),
    ("error", "failure", "fail", "invalid", "incorrect", "wrong"),
    ("success", "successful", "successfully", "valid", "correct", "pass"),
    ("enable", "activate"),
    ("disable", "deactivate"),
    ("search", "find", "lookup", "query"),
    ("purchase", "buy", "checkout", "pay"),
    ("user", "customer", "member"),
    ("admin", "administrator", "superuser"),
    ("credential", "password", "passcode"),
    ("navigate", "go", "open", "visit", "access"),
)

_CANONICAL: dict[str, str] = {}
for _group in SYNONYM_GROUPS:
    _head = stem(_group[0])
    for _word in _group:
        _CANONICAL.setdefault(stem(_word), _head)


def canonical(token: str) -> str:
    """Map a stemmed token onto the head of its synonym group."""
    return _CANONICAL.get(token, token)


def are_synonyms(a: str, b: str) -> bool:
    return a != b and canonical(a) == canonical(b)
