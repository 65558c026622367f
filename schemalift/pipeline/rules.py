"""Static selector rule sets used by the cleaner.

Order matters inside each tuple only for logging; every selector is
evaluated against the tree left by the previous one.
"""

from __future__ import annotations

# Elements that never carry visible content and may hold executable or
# binary payloads.
DANGEROUS_TAGS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "iframe",
    "svg",
    "canvas",
    "video",
    "audio",
    "object",
    "embed",
    "applet",
)

# Elements hidden from normal visual rendering.
HIDDEN_SELECTORS: tuple[str, ...] = (
    '[aria-hidden="true"]',
    "[hidden]",
    ".hidden",
    ".hide",
    ".invisible",
    ".sr-only",
    ".visually-hidden",
    ".screen-reader-text",
    '[style*="display: none"]',
    '[style*="display:none"]',
    '[style*="visibility: hidden"]',
    '[style*="visibility:hidden"]',
)

# Page chrome: navigation, banners, ads, share widgets, comments.
BOILERPLATE_SELECTORS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "aside",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="contentinfo"]',
    ".nav",
    ".navigation",
    ".navbar",
    ".header",
    ".footer",
    ".sidebar",
    ".cookie-banner",
    ".cookie-notice",
    ".cookie-consent",
    ".gdpr",
    ".popup",
    ".modal",
    ".overlay",
    ".lightbox",
    ".advertisement",
    ".ad",
    ".ads",
    ".advert",
    '[class*="ad-"]',
    ".social-share",
    ".share-buttons",
    ".social-icons",
    ".newsletter",
    ".subscribe",
    ".signup",
    ".breadcrumb",
    ".breadcrumbs",
    "#comments",
    ".comments",
    ".comment-section",
)

# Call-to-action elements reported as buttons.
BUTTON_SELECTORS: str = (
    'button, [role="button"], input[type="submit"], input[type="button"], .btn, .button'
)

# Tags whose subtree is never read for text.
NON_TEXTUAL_TAGS: frozenset[str] = frozenset(
    {"script", "style", "svg", "canvas", "video", "audio", "iframe", "noscript", "template", "head"}
)

HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

# Accessibility attributes read as text, in this order.
ACCESSIBILITY_ATTRS: tuple[str, ...] = ("aria-label", "title", "alt")
