"""
AuditMarket - Anonymous code-audit marketplace

Coordinates audit work between an anonymous submitter and an anonymous
reviewer, anchoring every stage as content-addressed evidence linked to
ledger certificates.

Pipeline stages:
- Estimate (deterministic fallback when the reasoning service is away)
- Package evidence into canonical documents
- Mint certificates that bind an owner to a content identifier
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
