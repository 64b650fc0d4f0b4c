"""Business logic layer for the relay service."""

from relay.services.transfer_service import TransferService

__all__ = ["TransferService"]
