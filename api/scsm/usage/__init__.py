"""Course usage module: exam attempts and completed modules."""

from .service import UsageService


__all__ = ["UsageService"]
