"""fetchpkg - fetch, verify and repackage a web application release."""

__version__ = "1.0.0"
